"""
Gameweek Data Model

Fixtures, match events, social signals and the derived leaderboard rows
produced by the aggregation engine.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple


HALF_TIME_MINUTE = 45
STOPPAGE_OFFSET_MINUTES = 15


class ReplayState(Enum):
    """Display mode governing who moves the cursor."""
    LIVE = "live"
    PAUSED = "paused"
    FINISHED = "finished"


def effective_event_second(
    minute: int,
    half_time_minute: int = HALF_TIME_MINUTE,
    stoppage_offset: int = STOPPAGE_OFFSET_MINUTES
) -> int:
    """
    Convert a stated match minute to elapsed seconds on the replay clock.

    Second-half minutes are pushed back by the half-time break so that
    minute 46 lands after the first-half stoppage window.
    """
    if minute > half_time_minute:
        minute += stoppage_offset
    return minute * 60


@dataclass
class MatchEvent:
    """A single structured match event (goal, card, substitution...)."""
    team: str
    minute: int
    type: str
    player: Optional[str] = None

    def __post_init__(self):
        self.minute = int(self.minute)

    def is_goal(self, marker: str = "goal") -> bool:
        return marker in (self.type or "")

    def copy(self) -> "MatchEvent":
        return MatchEvent(self.team, self.minute, self.type, self.player)

    def to_dict(self) -> Dict:
        return {
            "team": self.team,
            "min": self.minute,
            "type": self.type,
            "player": self.player,
        }


@dataclass
class Fixture:
    """
    A match between two teams within a gameweek.

    Identity is the (home, away) pair; the event list is replaced
    wholesale by live match-event updates.
    """
    home: str
    away: str
    events: List[MatchEvent] = field(default_factory=list)
    goals: Optional[Any] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.home, self.away)

    def involves(self, team: str) -> bool:
        return team == self.home or team == self.away

    def copy(self) -> "Fixture":
        """Independent copy: events and goals are not shared."""
        return Fixture(
            home=self.home,
            away=self.away,
            events=[e.copy() for e in self.events or []],
            goals=copy.deepcopy(self.goals),
        )


@dataclass
class SocialSignal:
    """One ingested social-media mention, already validated by the transport."""
    gameweek: int
    second: int
    teams: Sequence[str]
    sentiment: int = 0


@dataclass
class MatchEventUpdate:
    """Authoritative replacement of one fixture's goals and event list."""
    gameweek: int
    home: str
    away: str
    goals: Optional[Any] = None
    events: List[MatchEvent] = field(default_factory=list)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.home, self.away)


@dataclass
class FixtureCounts:
    """Per-fixture counters produced by scanning a window of the history."""
    total: int = 0
    positive: int = 0
    negative: int = 0
    home_goals: int = 0
    away_goals: int = 0


@dataclass
class LeaderboardRow:
    """Cumulative per-fixture score within the window [0, cursor]."""
    home: str
    away: str
    total: int = 0
    positive: int = 0
    negative: int = 0
    home_goals: int = 0
    away_goals: int = 0

    @property
    def key(self) -> Tuple[str, str]:
        return (self.home, self.away)

    @property
    def net(self) -> int:
        """Net sentiment: positive mentions less negative mentions."""
        return self.positive - self.negative

    @classmethod
    def from_counts(cls, fixture: Fixture, counts: FixtureCounts) -> "LeaderboardRow":
        return cls(
            home=fixture.home,
            away=fixture.away,
            total=counts.total,
            positive=counts.positive,
            negative=counts.negative,
            home_goals=counts.home_goals,
            away_goals=counts.away_goals,
        )

    def merge(self, other: "LeaderboardRow") -> None:
        """Accumulate a delta row for the same fixture."""
        self.total += other.total
        self.positive += other.positive
        self.negative += other.negative
        self.home_goals += other.home_goals
        self.away_goals += other.away_goals

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "home": self.home,
            "away": self.away,
            "total": self.total,
            "positive": self.positive,
            "negative": self.negative,
            "home_goals": self.home_goals,
            "away_goals": self.away_goals,
        }
