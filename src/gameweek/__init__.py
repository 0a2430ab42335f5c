"""
Gameweek Aggregation Module

Turns a sparse stream of timestamped social signals into a per-match
leaderboard as a replay cursor moves through a gameweek.

Components:
- SignalIndex: Per-second signal buckets and the window scan
- GameweekEngine: Cursor, leaderboard and live-update handling
- GameweekDispatcher: Serializing command bus with change listeners

Usage:
    from src.gameweek import GameweekEngine, GameweekDispatcher

    engine = GameweekEngine()
    dispatcher = GameweekDispatcher(engine)
    dispatcher.add_change_listener(redraw)

    dispatcher.load_gameweek(gameweek, fixtures, signals)
    dispatcher.seek(2700)

    for row in engine.read_leaderboard():
        print(row.home, row.away, row.total)
"""

from .models import (
    Fixture,
    FixtureCounts,
    LeaderboardRow,
    MatchEvent,
    MatchEventUpdate,
    ReplayState,
    SocialSignal,
    effective_event_second,
)

from .config import (
    EngineConfig,
    load_engine_config,
)

from .signal_index import SignalIndex

from .engine import (
    GameweekEngine,
    GameweekSnapshot,
)

from .dispatcher import (
    Action,
    ActionType,
    GameweekDispatcher,
)

from .messages import (
    load_gameweek_file,
    parse_gameweek_payload,
    parse_match_event_update,
    parse_signal,
)

from .formatter import (
    format_leaderboard,
    format_timeline,
    leaderboard_to_frame,
)


__all__ = [
    # Models
    "Fixture",
    "FixtureCounts",
    "LeaderboardRow",
    "MatchEvent",
    "MatchEventUpdate",
    "ReplayState",
    "SocialSignal",
    "effective_event_second",

    # Config
    "EngineConfig",
    "load_engine_config",

    # Core classes
    "SignalIndex",
    "GameweekEngine",
    "GameweekSnapshot",
    "Action",
    "ActionType",
    "GameweekDispatcher",

    # Transport parsing
    "load_gameweek_file",
    "parse_gameweek_payload",
    "parse_match_event_update",
    "parse_signal",

    # Output
    "format_leaderboard",
    "format_timeline",
    "leaderboard_to_frame",
]
