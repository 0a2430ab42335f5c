"""
Transport Messages

Converts the JSON-shaped records delivered by the live transport into
engine model objects.

Wire shapes:
    gameweek payload: {"gameweek", "fixtures": [...], "tweets": {"<sec>": {"<idx>": [m, p, n]}}}
    live signal:      {"gameweek", "seconds", "teams", "sentiment"}
    live events:      {"gameweek", "events": {"home", "away", "goals", "events": [...]}}
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union

from loguru import logger

from .models import Fixture, MatchEvent, MatchEventUpdate, SocialSignal


VALID_SENTIMENTS = (-1, 0, 1)

SignalHistory = Dict[int, Dict[int, List[int]]]


def _require(record: Mapping[str, Any], key: str, kind: str) -> Any:
    if key not in record:
        raise ValueError(f"{kind} record missing '{key}': {record!r}")
    return record[key]


def _as_int(value: Any, key: str, kind: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{kind} field '{key}' must be an integer, got {value!r}") from None


def parse_match_event(record: Mapping[str, Any]) -> MatchEvent:
    """Parse one {"team", "min", "type", "player"} event."""
    return MatchEvent(
        team=_require(record, "team", "event"),
        minute=_as_int(_require(record, "min", "event"), "min", "event"),
        type=_require(record, "type", "event"),
        player=record.get("player"),
    )


def parse_fixture(record: Mapping[str, Any]) -> Fixture:
    return Fixture(
        home=_require(record, "home", "fixture"),
        away=_require(record, "away", "fixture"),
        events=[parse_match_event(e) for e in record.get("events") or []],
        goals=record.get("goals"),
    )


def parse_signal_history(raw: Mapping[Any, Mapping[Any, Any]]) -> SignalHistory:
    """Normalize JSON string keys to ints: {second: {fixture_index: [m, p, n]}}."""
    history: SignalHistory = {}
    for second, bucket in (raw or {}).items():
        history[int(second)] = {
            int(idx): [int(v) for v in triple]
            for idx, triple in bucket.items()
        }
    return history


def parse_gameweek_payload(
    payload: Mapping[str, Any]
) -> Tuple[int, List[Fixture], SignalHistory]:
    """
    Parse a full gameweek delivery.

    Returns:
        Tuple of (gameweek, fixtures, signal history)
    """
    gameweek = _as_int(_require(payload, "gameweek", "gameweek"), "gameweek", "gameweek")
    fixtures = [parse_fixture(f) for f in _require(payload, "fixtures", "gameweek")]
    history = parse_signal_history(payload.get("tweets") or payload.get("signals") or {})

    logger.debug(f"Parsed gameweek {gameweek}: {len(fixtures)} fixtures, {len(history)} seconds")
    return gameweek, fixtures, history


def parse_signal(record: Mapping[str, Any]) -> SocialSignal:
    """Parse a live signal message."""
    sentiment = _as_int(record.get("sentiment", 0), "sentiment", "signal")
    if sentiment not in VALID_SENTIMENTS:
        raise ValueError(f"Sentiment must be one of {VALID_SENTIMENTS}, got {sentiment}")

    teams = _require(record, "teams", "signal")
    if isinstance(teams, str):
        teams = [teams]

    return SocialSignal(
        gameweek=_as_int(_require(record, "gameweek", "signal"), "gameweek", "signal"),
        second=_as_int(_require(record, "seconds", "signal"), "seconds", "signal"),
        teams=list(teams),
        sentiment=sentiment,
    )


def parse_match_event_update(record: Mapping[str, Any]) -> MatchEventUpdate:
    """Parse a live match-event message."""
    body = _require(record, "events", "match event")
    return MatchEventUpdate(
        gameweek=_as_int(_require(record, "gameweek", "match event"), "gameweek", "match event"),
        home=_require(body, "home", "match event"),
        away=_require(body, "away", "match event"),
        goals=body.get("goals"),
        events=[parse_match_event(e) for e in body.get("events") or []],
    )


def load_gameweek_file(path: Union[str, Path]) -> Tuple[int, List[Fixture], SignalHistory]:
    """Read a gameweek payload from a JSON file."""
    path = Path(path)
    with open(path) as f:
        payload = json.load(f)
    logger.info(f"Loaded gameweek payload from {path}")
    return parse_gameweek_payload(payload)
