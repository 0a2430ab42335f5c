"""
Signal Index

Sparse per-second history of social-signal activity, keyed by fixture
index, plus the window scan that folds it (and the fixtures' goal
events) into per-fixture counters.

Storage layout:
    {second: {fixture_index: [mentions, positive, negative]}}

The negative slot is a signed accumulator: a -1 sentiment signal adds
-1 to it. The window scan subtracts it back out, so scanned counters
report negative mentions as a non-negative count.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from .config import EngineConfig
from .models import Fixture, FixtureCounts, effective_event_second


MENTIONS, POSITIVE, NEGATIVE = 0, 1, 2

SecondBucket = Dict[int, List[int]]


class SignalIndex:
    """
    Per-second signal buckets for one gameweek.

    Individual signals are never kept; they are folded into the bucket
    for their second at ingest time.
    """

    def __init__(
        self,
        history: Optional[Mapping[int, Mapping[int, Sequence[int]]]] = None,
        fixture_count: Optional[int] = None
    ):
        """
        Initialize index.

        Args:
            history: Existing sparse history (copied, never aliased)
            fixture_count: If given, entries for fixture indices outside
                [0, fixture_count) are dropped
        """
        self._buckets: Dict[int, SecondBucket] = {}
        dropped = 0

        for second, bucket in (history or {}).items():
            copied = {}
            for idx, triple in bucket.items():
                idx = int(idx)
                if fixture_count is not None and not 0 <= idx < fixture_count:
                    dropped += 1
                    continue
                copied[idx] = [int(v) for v in triple]
            if copied:
                self._buckets[int(second)] = copied

        if dropped:
            logger.warning(f"Dropped {dropped} bucket entries referencing unknown fixtures")

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, second: int) -> bool:
        return second in self._buckets

    def bucket(self, second: int) -> Dict[int, Tuple[int, int, int]]:
        """Read-only copy of the bucket for one second (empty if none)."""
        return {
            idx: tuple(triple)
            for idx, triple in self._buckets.get(second, {}).items()
        }

    def record(self, second: int, fixture_indices: Iterable[int], sentiment: int) -> None:
        """
        Fold one signal into the bucket for its second.

        Args:
            second: Elapsed second of the signal
            fixture_indices: Distinct fixtures the signal resolved to
            sentiment: -1, 0 or +1
        """
        fixture_indices = list(fixture_indices)
        if not fixture_indices:
            return

        bucket = self._buckets.setdefault(second, {})

        for idx in fixture_indices:
            triple = bucket.get(idx) or [0, 0, 0]
            triple[MENTIONS] += 1
            if sentiment == 1:
                triple[POSITIVE] += sentiment
            elif sentiment == -1:
                triple[NEGATIVE] += sentiment
            bucket[idx] = triple

    def count_goals(
        self,
        fixture: Fixture,
        start: int,
        end: int,
        config: EngineConfig
    ) -> Tuple[int, int]:
        """Count home/away goals whose effective second lies in [start, end]."""
        home_goals = away_goals = 0

        for event in fixture.events or []:
            if not event.is_goal(config.goal_marker):
                continue
            event_second = effective_event_second(
                event.minute,
                config.half_time_minute,
                config.stoppage_offset_minutes,
            )
            if start <= event_second <= end:
                if event.team == fixture.home:
                    home_goals += 1
                else:
                    away_goals += 1

        return home_goals, away_goals

    def scan_window(
        self,
        fixtures: Sequence[Fixture],
        start: int,
        end: int,
        config: EngineConfig
    ) -> List[FixtureCounts]:
        """
        Aggregate every fixture over the inclusive window [start, end].

        Always correct regardless of prior state; cost is proportional
        to window length times fixture count.

        Returns:
            One FixtureCounts per fixture, in fixture order
        """
        counts = []
        for fixture in fixtures:
            home_goals, away_goals = self.count_goals(fixture, start, end, config)
            counts.append(FixtureCounts(home_goals=home_goals, away_goals=away_goals))

        for second in range(start, end + 1):
            bucket = self._buckets.get(second)
            if not bucket:
                continue

            for idx, triple in bucket.items():
                previous = counts[idx]
                previous.total += triple[MENTIONS]
                previous.positive += triple[POSITIVE]
                previous.negative -= triple[NEGATIVE]

        return counts
