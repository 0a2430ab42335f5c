"""
Gameweek Dispatcher

Single-writer command bus in front of a GameweekEngine. Each action is
applied to completion before the next one starts, and change listeners
are notified (without payload) after every command.

Actions dispatched from a change listener while another is running are
queued and applied in order once it completes. Callers on other threads
block until the running dispatch, including its queue, has drained.

If a command raises, the error propagates to the dispatch caller and any
commands still queued behind it are dropped with a warning.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from .engine import GameweekEngine, GameweekSnapshot
from .models import Fixture, MatchEventUpdate, ReplayState, SocialSignal


ChangeListener = Callable[[], None]


class ActionType(Enum):
    """Commands understood by the dispatcher."""
    GAME_WEEK_CHANGE = "game_week_change"
    GAME_WEEK_LOADED = "game_week_loaded"
    GAME_WEEK_UPDATE_CURSOR = "game_week_update_cursor"
    GAME_WEEK_LIVE_UPDATE = "game_week_live_update"
    GAME_WEEK_LIVE_EVENTS = "game_week_live_events"
    REPLAY_LIVE = "replay_live"
    REPLAY_PAUSED = "replay_paused"
    REPLAY_FINISHED = "replay_finished"


@dataclass
class Action:
    """A command plus its arguments."""
    action_type: ActionType
    payload: Dict[str, Any] = field(default_factory=dict)


class GameweekDispatcher:
    """
    Serializes commands into one engine and notifies observers.
    """

    def __init__(self, engine: GameweekEngine):
        """
        Initialize dispatcher.

        Args:
            engine: Engine instance owned by this dispatcher
        """
        self.engine = engine
        self._listeners: List[ChangeListener] = []
        self._pending: Deque[Action] = deque()
        self._lock = threading.RLock()
        self._dispatching = False

        self._handlers: Dict[ActionType, Callable[[Dict[str, Any]], None]] = {
            ActionType.GAME_WEEK_CHANGE: lambda p: engine.set_loading(True),
            ActionType.GAME_WEEK_LOADED: lambda p: engine.load(
                p["gameweek"], p["fixtures"], p.get("signals")
            ),
            ActionType.GAME_WEEK_UPDATE_CURSOR: lambda p: engine.seek_cursor(p["cursor"]),
            ActionType.GAME_WEEK_LIVE_UPDATE: lambda p: engine.ingest_signal(p["signal"]),
            ActionType.GAME_WEEK_LIVE_EVENTS: lambda p: engine.apply_match_event(p["update"]),
            ActionType.REPLAY_LIVE: lambda p: engine.set_replay_state(ReplayState.LIVE),
            ActionType.REPLAY_PAUSED: lambda p: engine.set_replay_state(ReplayState.PAUSED),
            ActionType.REPLAY_FINISHED: lambda p: engine.set_replay_state(ReplayState.FINISHED),
        }

    def add_change_listener(self, callback: ChangeListener) -> None:
        self._listeners.append(callback)

    def remove_change_listener(self, callback: ChangeListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _emit_change(self) -> None:
        for callback in list(self._listeners):
            callback()

    def dispatch(self, action: Action) -> Optional[GameweekSnapshot]:
        """
        Apply an action and notify listeners.

        Args:
            action: Command to apply

        Returns:
            Engine snapshot once the queue is drained, or None when the
            action was queued behind a command already in progress

        Raises:
            ValueError: Unknown action type or invalid cursor target
        """
        if action.action_type not in self._handlers:
            raise ValueError(f"Unknown action type: {action.action_type}")

        with self._lock:
            self._pending.append(action)
            if self._dispatching:
                logger.debug(f"Queued {action.action_type.value} behind running command")
                return None

            self._dispatching = True
            try:
                while self._pending:
                    current = self._pending.popleft()
                    logger.debug(f"Dispatching {current.action_type.value}")
                    self._handlers[current.action_type](current.payload)
                    self._emit_change()
            finally:
                self._dispatching = False
                if self._pending:
                    dropped = [a.action_type.value for a in self._pending]
                    logger.warning(
                        f"Dropping {len(dropped)} queued command(s) after failure: {dropped}"
                    )
                    self._pending.clear()

            return self.engine.snapshot()

    # =========================================================================
    # Convenience commands
    # =========================================================================

    def start_loading(self) -> Optional[GameweekSnapshot]:
        return self.dispatch(Action(ActionType.GAME_WEEK_CHANGE))

    def load_gameweek(
        self,
        gameweek: int,
        fixtures: Sequence[Fixture],
        signals: Optional[Mapping[int, Mapping[int, Sequence[int]]]] = None
    ) -> Optional[GameweekSnapshot]:
        return self.dispatch(Action(
            ActionType.GAME_WEEK_LOADED,
            {"gameweek": gameweek, "fixtures": fixtures, "signals": signals},
        ))

    def seek(self, cursor: int) -> Optional[GameweekSnapshot]:
        return self.dispatch(Action(ActionType.GAME_WEEK_UPDATE_CURSOR, {"cursor": cursor}))

    def live_signal(self, signal: SocialSignal) -> Optional[GameweekSnapshot]:
        return self.dispatch(Action(ActionType.GAME_WEEK_LIVE_UPDATE, {"signal": signal}))

    def live_match_event(self, update: MatchEventUpdate) -> Optional[GameweekSnapshot]:
        return self.dispatch(Action(ActionType.GAME_WEEK_LIVE_EVENTS, {"update": update}))

    def set_replay_state(self, replay_state: ReplayState) -> Optional[GameweekSnapshot]:
        action_type = {
            ReplayState.LIVE: ActionType.REPLAY_LIVE,
            ReplayState.PAUSED: ActionType.REPLAY_PAUSED,
            ReplayState.FINISHED: ActionType.REPLAY_FINISHED,
        }[ReplayState(replay_state)]
        return self.dispatch(Action(action_type))
