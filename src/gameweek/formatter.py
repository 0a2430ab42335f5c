"""
Leaderboard Formatter

Read-only rendering of engine output for display:
- pandas DataFrame
- Plain text table
- Markdown table
- JSON
- CSV (via the DataFrame)
"""

import json
from typing import List, Sequence

import pandas as pd

from .models import LeaderboardRow, MatchEvent


LEADERBOARD_COLUMNS = [
    "home", "away", "total", "positive", "negative", "home_goals", "away_goals",
]


def leaderboard_to_frame(rows: Sequence[LeaderboardRow]) -> pd.DataFrame:
    """
    Convert leaderboard rows to a DataFrame.

    Row order is preserved; a derived `net` column holds
    positive minus negative mentions.
    """
    df = pd.DataFrame([r.to_dict() for r in rows], columns=LEADERBOARD_COLUMNS)
    df["net"] = df["positive"] - df["negative"]
    return df


def _score(row: LeaderboardRow) -> str:
    return f"{row.home} {row.home_goals}-{row.away_goals} {row.away}"


def format_leaderboard(rows: Sequence[LeaderboardRow], format_type: str = "text") -> str:
    """
    Format leaderboard for output.

    Args:
        rows: Rows as returned by read_leaderboard()
        format_type: 'text', 'json', 'markdown', or 'csv'

    Returns:
        Formatted string
    """
    if format_type == "json":
        return json.dumps([r.to_dict() for r in rows], indent=2)

    elif format_type == "csv":
        return leaderboard_to_frame(rows).to_csv(index=False)

    elif format_type == "markdown":
        lines = [
            "| # | Match | Mentions | + | - | Net |",
            "|---|-------|----------|---|---|-----|",
        ]
        for i, row in enumerate(rows, 1):
            lines.append(
                f"| {i} | {_score(row)} | {row.total} | {row.positive} | "
                f"{row.negative} | {row.net:+d} |"
            )
        return "\n".join(lines)

    else:  # text
        width = max([len(_score(r)) for r in rows] + [5])
        lines = [
            f"{'#':>2}  {'Match':<{width}}  {'Total':>6}  {'Pos':>5}  {'Neg':>5}  {'Net':>5}",
            "-" * (width + 34),
        ]
        for i, row in enumerate(rows, 1):
            lines.append(
                f"{i:>2}  {_score(row):<{width}}  {row.total:>6}  {row.positive:>5}  "
                f"{row.negative:>5}  {row.net:>+5d}"
            )
        return "\n".join(lines)


def format_timeline(events: List[MatchEvent]) -> str:
    """One line per event: minute, type, team and player."""
    lines = []
    for event in events:
        player = f" ({event.player})" if event.player else ""
        lines.append(f"{event.minute:>3}'  {event.type:<10} {event.team}{player}")
    return "\n".join(lines)
