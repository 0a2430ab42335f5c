#!/usr/bin/env python3
"""
Gameweek Replay Pipeline

Wires a gameweek source to the aggregation engine and replays the match
clock:
1. Data Loading - Read a gameweek payload (or generate sample data)
2. Engine Load - Build the full-window leaderboard
3. Replay - Rewind to kick-off and tick the cursor forward while live
4. Finish - Jump to full time and render the final table

Usage:
    python -m pipelines.replay                          # Sample gameweek
    python -m pipelines.replay --file gameweek_3.json   # Recorded gameweek
    python -m pipelines.replay --step 300 --format markdown
    python -m pipelines.replay --format csv
"""

import argparse
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
from loguru import logger

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.gameweek import (
    Fixture,
    GameweekDispatcher,
    GameweekEngine,
    LeaderboardRow,
    MatchEvent,
    ReplayState,
    format_leaderboard,
    format_timeline,
    load_engine_config,
    load_gameweek_file,
)


SAMPLE_TEAMS = [
    ("Arsenal", "Chelsea"),
    ("Liverpool", "Everton"),
    ("Man City", "Man Utd"),
    ("Spurs", "West Ham"),
]


@dataclass
class ReplayConfig:
    """Configuration for a replay run."""
    gameweek_file: Optional[Path] = None
    config_path: Optional[Path] = None
    step_seconds: int = 300
    sample_gameweek: int = 1
    sample_signals: int = 2000
    seed: int = 42
    output_format: str = "text"
    verbose: bool = False


@dataclass
class ReplayResult:
    """Result from a replay run."""
    gameweek: Optional[int] = None
    status: str = "PENDING"
    ticks: int = 0
    changes: int = 0
    leaderboard: List[LeaderboardRow] = field(default_factory=list)
    timeline: List[MatchEvent] = field(default_factory=list)
    duration_seconds: float = 0.0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def generate_sample_gameweek(
    gameweek: int = 1,
    n_signals: int = 2000,
    window_seconds: int = 7200,
    seed: int = 42
) -> Tuple[int, List[Fixture], Dict[int, Dict[int, List[int]]]]:
    """Generate a sample gameweek with random signal activity and goals."""
    rng = np.random.default_rng(seed)

    fixtures = []
    for home, away in SAMPLE_TEAMS:
        events = []
        for _ in range(int(rng.integers(0, 4))):
            events.append(MatchEvent(
                team=home if rng.random() < 0.55 else away,
                minute=int(rng.integers(1, 91)),
                type="goal",
            ))
        fixtures.append(Fixture(home=home, away=away, events=events))

    history: Dict[int, Dict[int, List[int]]] = {}
    seconds = rng.integers(0, window_seconds + 1, n_signals)
    fixture_ids = rng.integers(0, len(fixtures), n_signals)
    sentiments = rng.choice([-1, 0, 1], n_signals, p=[0.3, 0.3, 0.4])

    for second, idx, sentiment in zip(seconds, fixture_ids, sentiments):
        triple = history.setdefault(int(second), {}).setdefault(int(idx), [0, 0, 0])
        triple[0] += 1
        if sentiment == 1:
            triple[1] += 1
        elif sentiment == -1:
            triple[2] -= 1

    return gameweek, fixtures, history


class GameweekReplay:
    """Replay orchestrator: owns one engine and its dispatcher."""

    def __init__(self, config: ReplayConfig):
        self.config = config
        self.result = ReplayResult()

        self.engine = GameweekEngine(load_engine_config(config.config_path))
        self.dispatcher = GameweekDispatcher(self.engine)
        self.dispatcher.add_change_listener(self._on_change)

        logger.info(f"Replay initialized (step {config.step_seconds}s)")

    def _on_change(self) -> None:
        self.result.changes += 1

    def stage_data_loading(self) -> Tuple[int, List[Fixture], Dict[int, Dict[int, List[int]]]]:
        """Load gameweek data."""
        logger.info("Stage 1: Data Loading")
        if self.config.gameweek_file:
            return load_gameweek_file(self.config.gameweek_file)

        self.result.warnings.append("Using sample data")
        return generate_sample_gameweek(
            gameweek=self.config.sample_gameweek,
            n_signals=self.config.sample_signals,
            window_seconds=self.engine.config.window_seconds,
            seed=self.config.seed,
        )

    def stage_engine_load(self, gameweek: int, fixtures: List[Fixture], history: Dict) -> None:
        """Load the engine."""
        logger.info("Stage 2: Engine Load")
        self.dispatcher.start_loading()
        self.dispatcher.load_gameweek(gameweek, fixtures, history)
        self.result.gameweek = gameweek

    def stage_replay(self) -> None:
        """Tick the cursor from kick-off to the end of the window."""
        logger.info("Stage 3: Replay")
        window = self.engine.config.window_seconds
        step = max(1, self.config.step_seconds)

        self.dispatcher.set_replay_state(ReplayState.LIVE)
        cursor = 0
        while True:
            self.dispatcher.seek(cursor)
            self.result.ticks += 1
            leader = self.engine.read_leaderboard()[:1]
            if leader:
                logger.debug(f"t={cursor:>4}s leader {leader[0].home} v {leader[0].away} ({leader[0].total})")
            if cursor >= window:
                break
            cursor = min(cursor + step, window)

    def stage_finish(self) -> None:
        """Jump to full time and collect the final table."""
        logger.info("Stage 4: Finish")
        snapshot = self.dispatcher.set_replay_state(ReplayState.FINISHED)
        self.result.leaderboard = list(snapshot.leaderboard)
        self.result.timeline = list(snapshot.timeline)

    def run(self) -> ReplayResult:
        """Execute replay."""
        start = time.time()
        logger.info(f"{'='*60}\nStarting gameweek replay\n{'='*60}")
        try:
            gameweek, fixtures, history = self.stage_data_loading()
            self.stage_engine_load(gameweek, fixtures, history)
            self.stage_replay()
            self.stage_finish()
            self.result.status = "SUCCESS"
        except Exception as e:
            logger.exception(f"Replay failed: {e}")
            self.result.status = "FAILED"
            self.result.errors.append(str(e))
        self.result.duration_seconds = time.time() - start
        logger.info(f"Replay {self.result.status} in {self.result.duration_seconds:.2f}s")
        return self.result


def main():
    parser = argparse.ArgumentParser(description="Replay a gameweek through the aggregation engine")
    parser.add_argument("--file", type=str, help="Gameweek payload JSON")
    parser.add_argument("--config", type=str, help="Engine config YAML")
    parser.add_argument("--step", type=int, default=300, help="Cursor step in seconds")
    parser.add_argument("--format", choices=["text", "markdown", "json", "csv"], default="text")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO",
               format="<green>{time:HH:mm:ss}</green> | <level>{level:<8}</level> | {message}")

    config = ReplayConfig(
        gameweek_file=Path(args.file) if args.file else None,
        config_path=Path(args.config) if args.config else None,
        step_seconds=args.step,
        output_format=args.format,
        verbose=args.verbose,
    )
    result = GameweekReplay(config).run()

    print(f"\n{'='*60}\nGAMEWEEK {result.gameweek} LEADERBOARD\n{'='*60}")
    print(format_leaderboard(result.leaderboard, config.output_format))
    if result.timeline and config.output_format not in ("json", "csv"):
        print(f"\nMatch events:\n{format_timeline(result.timeline)}")
    print(f"\nStatus: {result.status} ({result.ticks} ticks, {result.duration_seconds:.2f}s)")
    sys.exit(0 if result.status == "SUCCESS" else 1)


if __name__ == "__main__":
    main()
