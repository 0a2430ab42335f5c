"""
Unit Tests for Transport Parsing and Leaderboard Formatting
"""

import json

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.gameweek import (
    GameweekEngine,
    LeaderboardRow,
    MatchEvent,
    format_leaderboard,
    format_timeline,
    leaderboard_to_frame,
    load_gameweek_file,
    parse_gameweek_payload,
    parse_match_event_update,
    parse_signal,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def payload():
    """Gameweek payload as delivered by the transport."""
    return {
        "gameweek": "3",
        "fixtures": [
            {
                "home": "Arsenal",
                "away": "Chelsea",
                "events": [{"team": "Arsenal", "min": "23", "type": "goal", "player": "Saka"}],
                "goals": {"Arsenal": 1, "Chelsea": 0},
            },
            {"home": "Everton", "away": "Liverpool"},
        ],
        "tweets": {
            "120": {"0": [4, 2, -1]},
            "7000": {"1": [1, 0, 0]},
        },
    }


@pytest.fixture
def rows():
    return [
        LeaderboardRow(home="Arsenal", away="Chelsea", total=10, positive=6, negative=2, home_goals=1),
        LeaderboardRow(home="Everton", away="Liverpool", total=3, positive=0, negative=3, away_goals=2),
    ]


# =============================================================================
# Parsing Tests
# =============================================================================

class TestParsing:
    """Tests for transport record parsing."""

    def test_parse_gameweek_payload(self, payload):
        gameweek, fixtures, history = parse_gameweek_payload(payload)

        assert gameweek == 3
        assert [f.key for f in fixtures] == [("Arsenal", "Chelsea"), ("Everton", "Liverpool")]
        assert fixtures[0].events[0].minute == 23
        assert fixtures[0].goals == {"Arsenal": 1, "Chelsea": 0}
        assert fixtures[1].events == []
        assert history == {120: {0: [4, 2, -1]}, 7000: {1: [1, 0, 0]}}

    def test_payload_feeds_engine(self, payload):
        engine = GameweekEngine()
        engine.load(*parse_gameweek_payload(payload))

        top = engine.read_leaderboard()[0]
        assert top.key == ("Arsenal", "Chelsea")
        assert top.total == 4
        assert top.negative == 1
        assert top.home_goals == 1

    def test_missing_fixtures_rejected(self):
        with pytest.raises(ValueError):
            parse_gameweek_payload({"gameweek": 1})

    def test_parse_signal(self):
        signal = parse_signal({"gameweek": 3, "seconds": 615, "teams": ["Arsenal"], "sentiment": -1})

        assert signal.gameweek == 3
        assert signal.second == 615
        assert signal.teams == ["Arsenal"]
        assert signal.sentiment == -1

    def test_single_team_string(self):
        signal = parse_signal({"gameweek": 3, "seconds": 1, "teams": "Arsenal"})

        assert signal.teams == ["Arsenal"]
        assert signal.sentiment == 0

    def test_bad_sentiment_rejected(self):
        with pytest.raises(ValueError):
            parse_signal({"gameweek": 3, "seconds": 1, "teams": ["A"], "sentiment": 2})

    def test_null_sentiment_rejected(self):
        with pytest.raises(ValueError, match="sentiment"):
            parse_signal({"gameweek": 3, "seconds": 1, "teams": ["A"], "sentiment": None})

    def test_null_seconds_rejected(self):
        with pytest.raises(ValueError, match="seconds"):
            parse_signal({"gameweek": 3, "seconds": None, "teams": ["A"]})

    def test_non_numeric_event_minute_rejected(self):
        with pytest.raises(ValueError, match="min"):
            parse_match_event_update({
                "gameweek": 3,
                "events": {
                    "home": "Arsenal",
                    "away": "Chelsea",
                    "events": [{"team": "Arsenal", "min": "ht", "type": "goal"}],
                },
            })

    def test_parse_match_event_update(self):
        update = parse_match_event_update({
            "gameweek": 3,
            "events": {
                "home": "Arsenal",
                "away": "Chelsea",
                "goals": {"Arsenal": 2, "Chelsea": 0},
                "events": [
                    {"team": "Arsenal", "min": "23", "type": "goal", "player": "Saka"},
                    {"team": "Arsenal", "min": 67, "type": "goal", "player": "Odegaard"},
                ],
            },
        })

        assert update.key == ("Arsenal", "Chelsea")
        assert [e.minute for e in update.events] == [23, 67]

    def test_load_gameweek_file(self, tmp_path, payload):
        path = tmp_path / "gameweek.json"
        path.write_text(json.dumps(payload))

        gameweek, fixtures, history = load_gameweek_file(path)
        assert gameweek == 3
        assert len(fixtures) == 2
        assert 120 in history


# =============================================================================
# Formatter Tests
# =============================================================================

class TestFormatter:
    """Tests for leaderboard rendering."""

    def test_frame_columns(self, rows):
        df = leaderboard_to_frame(rows)

        assert list(df.columns) == [
            "home", "away", "total", "positive", "negative",
            "home_goals", "away_goals", "net",
        ]
        assert df["net"].tolist() == [4, -3]
        assert df["home"].tolist() == ["Arsenal", "Everton"]

    def test_empty_frame(self):
        df = leaderboard_to_frame([])

        assert df.empty
        assert "net" in df.columns

    def test_text_format(self, rows):
        text = format_leaderboard(rows)

        assert "Arsenal 1-0 Chelsea" in text
        assert "Everton 0-2 Liverpool" in text
        assert text.index("Arsenal") < text.index("Everton")

    def test_markdown_format(self, rows):
        md = format_leaderboard(rows, "markdown")

        assert md.startswith("| # |")
        assert "| 1 | Arsenal 1-0 Chelsea | 10 | 6 | 2 | +4 |" in md

    def test_json_format(self, rows):
        data = json.loads(format_leaderboard(rows, "json"))

        assert data[1] == {
            "home": "Everton", "away": "Liverpool", "total": 3, "positive": 0,
            "negative": 3, "home_goals": 0, "away_goals": 2,
        }

    def test_csv_format(self, rows):
        lines = format_leaderboard(rows, "csv").splitlines()

        assert lines[0] == "home,away,total,positive,negative,home_goals,away_goals,net"
        assert lines[1] == "Arsenal,Chelsea,10,6,2,1,0,4"
        assert lines[2] == "Everton,Liverpool,3,0,3,0,2,-3"

    def test_timeline_format(self):
        text = format_timeline([MatchEvent(team="Arsenal", minute=23, type="goal", player="Saka")])

        assert "23'" in text
        assert "Saka" in text


# =============================================================================
# Run Tests
# =============================================================================

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
