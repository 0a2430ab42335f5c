"""
Pipelines Module

Contains orchestration scripts for the gameweek leaderboard.

Available pipelines:
- replay: Loads a gameweek and replays the match clock through the engine

Usage:
    # From command line
    python -m pipelines.replay --file gameweek_3.json

    # From Python
    from pipelines.replay import GameweekReplay, ReplayConfig

    config = ReplayConfig(step_seconds=300)
    replay = GameweekReplay(config)
    result = replay.run()
"""

from .replay import (
    ReplayConfig,
    ReplayResult,
    GameweekReplay,
)

__all__ = [
    "ReplayConfig",
    "ReplayResult",
    "GameweekReplay",
]
