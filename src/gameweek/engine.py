"""
Gameweek Aggregation Engine

Turns the per-second signal history and the fixtures' match events into
a per-fixture leaderboard over the window [0, cursor].

Cursor policy:
1. Moving backward: full rescan of [0, new_cursor]
2. Moving forward: scan only (cursor, new_cursor] and merge into the table
3. Late signal at or before the cursor: full rescan of [0, cursor]
4. Match-event update: full rescan of [0, cursor]

The leaderboard is a cache; it always equals a full scan of [0, cursor].
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from loguru import logger

from .config import EngineConfig
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
from .signal_index import SignalIndex


@dataclass(frozen=True)
class GameweekSnapshot:
    """Observable engine state after a command."""
    gameweek: Optional[int]
    cursor: int
    replay_state: ReplayState
    loading: bool
    leaderboard: Tuple[LeaderboardRow, ...] = field(default_factory=tuple)
    timeline: Tuple[MatchEvent, ...] = field(default_factory=tuple)


def _empty_stats() -> Dict[str, int]:
    return {
        "signals_ingested": 0,
        "signals_banked": 0,
        "signals_stale": 0,
        "unresolved_mentions": 0,
        "events_applied": 0,
        "events_stale": 0,
        "events_unmatched": 0,
        "full_scans": 0,
        "incremental_scans": 0,
    }


class GameweekEngine:
    """
    Incremental, time-windowed leaderboard for one loaded gameweek.

    Not thread-safe: callers serialize commands (see GameweekDispatcher).
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize engine.

        Args:
            config: Engine configuration (defaults if None)
        """
        self.config = config or EngineConfig()

        self.gameweek: Optional[int] = None
        self.loading = True
        self.fixtures: List[Fixture] = []
        self.signals = SignalIndex()
        self.table: List[LeaderboardRow] = []
        self.cursor = 0
        self.replay_state = ReplayState.FINISHED

        self.stats = _empty_stats()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def load(
        self,
        gameweek: int,
        fixtures: Sequence[Fixture],
        signal_history: Optional[Mapping[int, Mapping[int, Sequence[int]]]] = None
    ) -> None:
        """
        Replace all state with a freshly delivered gameweek.

        Args:
            gameweek: Gameweek identifier
            fixtures: Every fixture of the gameweek
            signal_history: Sparse {second: {fixture_index: [m, p, n]}}
        """
        self.gameweek = int(gameweek)
        self.fixtures = [fixture.copy() for fixture in fixtures]
        self.signals = SignalIndex(signal_history, fixture_count=len(self.fixtures))
        self.cursor = self.config.window_seconds
        self.table = self._full_table(0, self.cursor)
        self.loading = False
        self.replay_state = ReplayState.FINISHED

        logger.info(
            f"Loaded gameweek {self.gameweek}: {len(self.fixtures)} fixtures, "
            f"{len(self.signals)} active seconds"
        )

    def set_loading(self, loading: bool = True) -> None:
        """Flag a pending load without clearing current state."""
        self.loading = loading

    def is_loading(self) -> bool:
        return self.loading

    def get_gameweek(self) -> Optional[int]:
        return self.gameweek

    def get_cursor(self) -> int:
        return self.cursor

    def get_replay_state(self) -> ReplayState:
        return self.replay_state

    def set_replay_state(self, replay_state: ReplayState) -> None:
        """
        Switch display mode.

        Entering FINISHED jumps the cursor to the end of the window;
        LIVE and PAUSED only change the flag.
        """
        replay_state = ReplayState(replay_state)
        logger.info(f"Replay state {self.replay_state.value} -> {replay_state.value}")
        self.replay_state = replay_state

        if replay_state == ReplayState.FINISHED:
            self.seek_cursor(self.config.window_seconds)

    # =========================================================================
    # Window scanning
    # =========================================================================

    def full_window_scan(self, start: int, end: int) -> List[FixtureCounts]:
        """Per-fixture counters over [start, end], in fixture order."""
        return self.signals.scan_window(self.fixtures, start, end, self.config)

    def _rows(self, start: int, end: int) -> List[LeaderboardRow]:
        counts = self.full_window_scan(start, end)
        return [
            LeaderboardRow.from_counts(fixture, fixture_counts)
            for fixture, fixture_counts in zip(self.fixtures, counts)
        ]

    def _full_table(self, start: int, end: int) -> List[LeaderboardRow]:
        self.stats["full_scans"] += 1
        return self._rows(start, end)

    def _recompute(self) -> None:
        self.table = self._full_table(0, self.cursor)

    def _check_cursor(self, cursor: Any) -> int:
        if isinstance(cursor, bool) or not isinstance(cursor, int):
            raise ValueError(f"Cursor must be an integer second, got {cursor!r}")
        if not 0 <= cursor <= self.config.window_seconds:
            raise ValueError(
                f"Cursor {cursor} outside window [0, {self.config.window_seconds}]"
            )
        return cursor

    def seek_cursor(self, cursor: int) -> None:
        """
        Move the window's upper bound.

        Args:
            cursor: New inclusive upper bound in seconds

        Raises:
            ValueError: If cursor is not an int within [0, window_seconds]
        """
        cursor = self._check_cursor(cursor)

        if cursor == self.cursor:
            return

        if cursor < self.cursor:
            logger.debug(f"Rewind {self.cursor} -> {cursor}: full scan of [0, {cursor}]")
            self.table = self._full_table(0, cursor)
        else:
            logger.debug(f"Advance {self.cursor} -> {cursor}: scanning [{self.cursor + 1}, {cursor}]")
            self.stats["incremental_scans"] += 1
            self._merge_rows(self._rows(self.cursor + 1, cursor))

        self.cursor = cursor

    def _merge_rows(self, delta_rows: List[LeaderboardRow]) -> None:
        lookup = {row.key: row for row in self.table}

        for details in delta_rows:
            previous = lookup.get(details.key)
            if previous:
                previous.merge(details)
            else:
                self.table.append(details)
                lookup[details.key] = details

    # =========================================================================
    # Live updates
    # =========================================================================

    def _is_stale(self, gameweek: Any) -> bool:
        try:
            return self.gameweek is None or int(gameweek) != self.gameweek
        except (TypeError, ValueError):
            return True

    def _resolve_fixtures(self, teams: Sequence[str]) -> List[int]:
        """Distinct fixture indices mentioned, in first-mention order."""
        resolved: List[int] = []
        seen: Set[int] = set()

        for team in teams:
            idx = next(
                (i for i, fixture in enumerate(self.fixtures) if fixture.involves(team)),
                None,
            )
            if idx is None:
                self.stats["unresolved_mentions"] += 1
                logger.warning(f"No fixture for team mention {team!r} in gameweek {self.gameweek}")
                continue
            if idx not in seen:
                seen.add(idx)
                resolved.append(idx)

        return resolved

    def ingest_signal(self, signal: SocialSignal) -> None:
        """
        Fold a live signal into the history.

        Signals inside the aggregated window trigger a full rescan;
        later ones are banked for a future cursor advance.
        """
        if self._is_stale(signal.gameweek):
            self.stats["signals_stale"] += 1
            logger.debug(f"Ignoring signal for gameweek {signal.gameweek} (loaded {self.gameweek})")
            return

        if not 0 <= signal.second <= self.config.window_seconds:
            logger.warning(
                f"Dropping signal at second {signal.second}: outside window "
                f"[0, {self.config.window_seconds}]"
            )
            return

        fixture_indices = self._resolve_fixtures(signal.teams)
        if not fixture_indices:
            return

        self.signals.record(signal.second, fixture_indices, signal.sentiment)
        self.stats["signals_ingested"] += 1

        if signal.second <= self.cursor:
            self._recompute()
        else:
            self.stats["signals_banked"] += 1
            logger.debug(f"Banked signal at second {signal.second} (cursor {self.cursor})")

    def apply_match_event(self, update: MatchEventUpdate) -> None:
        """Overwrite one fixture's goals and events, then rescan [0, cursor]."""
        if self._is_stale(update.gameweek):
            self.stats["events_stale"] += 1
            logger.debug(f"Ignoring match event for gameweek {update.gameweek} (loaded {self.gameweek})")
            return

        fixture = next((f for f in self.fixtures if f.key == update.key), None)
        if fixture is None:
            self.stats["events_unmatched"] += 1
            logger.warning(f"Unable to find fixture for match event {update.home} v {update.away}")
            return

        fixture.goals = copy.deepcopy(update.goals)
        fixture.events = [event.copy() for event in update.events]
        self.stats["events_applied"] += 1
        self._recompute()

    # =========================================================================
    # Reads
    # =========================================================================

    def read_leaderboard(self) -> List[LeaderboardRow]:
        """Rows ordered by total mentions, descending; ties keep fixture order."""
        rows = [LeaderboardRow(**row.to_dict()) for row in self.table]
        return sorted(rows, key=lambda r: r.total, reverse=True)

    def read_event_timeline(self) -> List[MatchEvent]:
        """Events that happened strictly before the cursor, by stated minute."""
        events = []
        for fixture in self.fixtures:
            for event in fixture.events or []:
                event_second = effective_event_second(
                    event.minute,
                    self.config.half_time_minute,
                    self.config.stoppage_offset_minutes,
                )
                if event_second < self.cursor:
                    events.append(MatchEvent(event.team, event.minute, event.type, event.player))

        return sorted(events, key=lambda e: e.minute)

    def snapshot(self) -> GameweekSnapshot:
        return GameweekSnapshot(
            gameweek=self.gameweek,
            cursor=self.cursor,
            replay_state=self.replay_state,
            loading=self.loading,
            leaderboard=tuple(self.read_leaderboard()),
            timeline=tuple(self.read_event_timeline()),
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get engine statistics."""
        return {
            **self.stats,
            "fixtures": len(self.fixtures),
            "active_seconds": len(self.signals),
        }

    def reset_stats(self):
        """Reset statistics counters."""
        self.stats = _empty_stats()
