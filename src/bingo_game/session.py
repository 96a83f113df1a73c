"""Game session controller: phases, timers and player commands.

A ``GameSession`` owns every piece of mutable game state. Commands return the
events they produced; listeners registered with ``subscribe`` also receive
events raised from timer callbacks.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

from .calls import Call, CallEngine
from .card import CellRef, PlayerCard
from .catalog import CardCatalog, default_catalog
from .config import SessionSettings
from .errors import ExhaustedPool, NotOnCard, NotYetCalled, NotYetWinning, UnknownCard
from .fsm import Outcome, Phase, SessionFSM
from .rng import PyRandomSource, RandomSource
from .timers import Scheduler, TimerHandle, VirtualScheduler

logger = logging.getLogger(__name__)

RECENT_CALLS = 4


@dataclass(frozen=True)
class SessionEvent:
    type: str
    phase: Phase
    at: float
    payload: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "phase": self.phase.value, "at": self.at, **self.payload}


Listener = Callable[[SessionEvent], None]
CellView = Tuple[Optional[int], bool]


@dataclass(frozen=True)
class SessionView:
    """Read-only picture of a session for a presentation layer."""

    phase: Phase
    outcome: Optional[Outcome]
    stake: int
    selection_seconds_left: Optional[int]
    game_seconds_left: Optional[int]
    card_ids: Tuple[int, ...]
    taken_ids: FrozenSet[int]
    selected_id: Optional[int]
    confirmed_id: Optional[int]
    card_id: Optional[int]
    spectator: bool
    current_call: Optional[Call]
    recent_calls: Tuple[Call, ...]
    called_count: int
    exhausted: bool
    card_rows: Tuple[Tuple[CellView, ...], ...]
    bingo_available: bool
    claim_feedback: Optional[str]

    @property
    def headline(self) -> str:
        """Text of the large call display."""
        if self.phase is Phase.RESOLVED:
            return "BINGO!" if self.outcome is Outcome.WIN else "TIME UP"
        if self.exhausted:
            return "END"
        return str(self.current_call) if self.current_call else "--"


def command(method: Callable[..., None]) -> Callable[..., List[SessionEvent]]:
    """Collect and return the events emitted while ``method`` runs."""

    @functools.wraps(method)
    def wrapper(self: "GameSession", *args: Any, **kwargs: Any) -> List[SessionEvent]:
        events: List[SessionEvent] = []
        self._recorders.append(events)
        try:
            method(self, *args, **kwargs)
        finally:
            self._recorders.pop()
        return events

    return wrapper


def _positive_int(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class GameSession:
    def __init__(
        self,
        *,
        settings: Optional[SessionSettings] = None,
        catalog: Optional[CardCatalog] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[RandomSource] = None,
    ):
        self.settings = settings or SessionSettings()
        self.catalog = catalog if catalog is not None else default_catalog()
        self.scheduler = scheduler if scheduler is not None else VirtualScheduler()
        self._rng = rng if rng is not None else PyRandomSource()
        self._fsm = SessionFSM()
        self._listeners: List[Listener] = []
        self._recorders: List[List[SessionEvent]] = []
        self._timers: Dict[str, TimerHandle] = {}
        # bumped on every phase change; stale timer callbacks compare against it
        self._generation = 0

        self.stake = self.settings.stake
        self._board: Dict[int, bool] = {}
        self._selected: Optional[int] = None
        self._confirmed: Optional[int] = None
        self._selection_left: Optional[int] = None
        self._game_left: Optional[int] = None
        self._engine: Optional[CallEngine] = None
        self._card: Optional[PlayerCard] = None
        self._outcome: Optional[Outcome] = None
        self._exhausted = False
        self._bingo_available = False
        self._claim_feedback: Optional[str] = None

    # ------------------------------------------------------------------ queries

    @property
    def phase(self) -> Phase:
        return self._fsm.phase

    @property
    def engine(self) -> Optional[CallEngine]:
        return self._engine

    @property
    def card(self) -> Optional[PlayerCard]:
        return self._card

    @property
    def active_timers(self) -> List[str]:
        return sorted(name for name, h in self._timers.items() if not h.cancelled)

    def snapshot(self) -> SessionView:
        engine = self._engine
        card_rows: Tuple[Tuple[CellView, ...], ...] = ()
        if self._card is not None:
            card_rows = tuple(
                tuple((c.number, c.marked) for c in row) for row in self._card.cells
            )
        return SessionView(
            phase=self.phase,
            outcome=self._outcome,
            stake=self.stake,
            selection_seconds_left=self._selection_left,
            game_seconds_left=self._game_left,
            card_ids=tuple(sorted(self._board)),
            taken_ids=frozenset(cid for cid, taken in self._board.items() if taken),
            selected_id=self._selected,
            confirmed_id=self._confirmed,
            card_id=self._card.card_id if self._card is not None else None,
            spectator=self.phase in (Phase.PLAYING, Phase.RESOLVED) and self._card is None,
            current_call=engine.current if engine else None,
            recent_calls=tuple(engine.recent(RECENT_CALLS)) if engine else (),
            called_count=len(engine.history) if engine else 0,
            exhausted=self._exhausted,
            card_rows=card_rows,
            bingo_available=self._bingo_available,
            claim_feedback=self._claim_feedback,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ----------------------------------------------------------------- commands

    @command
    def choose_stake(self, stake: int) -> None:
        if self.phase is not Phase.IDLE:
            self._reject("choose_stake", "wrong_phase")
            return
        value = _positive_int(stake)
        if value is None:
            self._reject("choose_stake", "invalid_stake", stake=stake)
            return
        self.stake = value
        self._emit("stake_chosen", stake=self.stake)

    @command
    def start_play(self, stake: Optional[int] = None) -> None:
        if self.phase is not Phase.IDLE:
            self._reject("start_play", "wrong_phase")
            return
        if stake is not None:
            value = _positive_int(stake)
            if value is None:
                self._reject("start_play", "invalid_stake", stake=stake)
                return
            self.stake = value
        self._transition("start_play")
        self._enter_selection()

    @command
    def select_card(self, card_id: int) -> None:
        if self.phase is not Phase.SELECTING:
            self._reject("select_card", "wrong_phase", card_id=card_id)
        elif self._confirmed is not None:
            self._reject("select_card", "already_confirmed", card_id=card_id)
        elif card_id not in self._board:
            self._reject("select_card", "unknown_id", card_id=card_id)
        elif self._board[card_id]:
            self._reject("select_card", "taken", card_id=card_id)
        else:
            previous, self._selected = self._selected, card_id
            self._emit("card_selected", card_id=card_id, previous=previous)

    @command
    def confirm_card(self) -> None:
        if self.phase is not Phase.SELECTING:
            self._reject("confirm_card", "wrong_phase")
        elif self._confirmed is not None:
            self._reject("confirm_card", "already_confirmed")
        elif self._selected is None:
            self._reject("confirm_card", "no_selection")
        else:
            self._confirmed = self._selected
            logger.info("Card %d confirmed", self._confirmed)
            self._emit("card_confirmed", card_id=self._confirmed)

    @command
    def toggle_mark(self, ref: CellRef) -> None:
        if self.phase is not Phase.PLAYING:
            self._reject("toggle_mark", "wrong_phase", number=ref)
            return
        if self._card is None:
            self._reject("toggle_mark", "spectator", number=ref)
            return
        try:
            outcome = self._card.toggle_mark(ref)
        except NotYetCalled as exc:
            logger.debug("%s", exc)
            self._reject("toggle_mark", "not_yet_called", number=exc.number)
            return
        except NotOnCard as exc:
            logger.debug("%s", exc)
            self._reject("toggle_mark", "not_on_card", number=exc.number)
            return
        if not outcome.changed:
            self._reject("toggle_mark", "free_space", number="free")
            return
        if outcome.marked:
            self._emit("cell_marked", number=outcome.number)
            if outcome.bingo:
                self._bingo_available = True
                self._emit("bingo_available", lines=list(outcome.lines))
        else:
            self._emit("cell_unmarked", number=outcome.number)
            self._bingo_available = bool(self._card.completed_lines())

    @command
    def claim_win(self) -> None:
        if self.phase is not Phase.PLAYING:
            self._reject("claim_win", "wrong_phase")
            return
        if self._card is None:
            self._reject("claim_win", "spectator")
            return
        try:
            lines = self._card.claim()
        except NotYetWinning as exc:
            logger.info("Claim rejected: %s", exc)
            self._claim_feedback = "not_yet"
            self._reject("claim_win", "not_yet_winning")
            self._start_timer(
                "feedback",
                self.scheduler.call_later(
                    self.settings.claim_feedback_seconds,
                    self._guarded(self._clear_feedback),
                    name="feedback",
                ),
            )
            return
        logger.info("Bingo claimed on card %d: %s", self._card.card_id, ", ".join(lines))
        self._emit("claim_accepted", card_id=self._card.card_id, lines=lines)
        self._resolve(Outcome.WIN)

    @command
    def restart(self) -> None:
        """Manual refresh: drop the current game and open a new selection."""
        if self.phase not in (Phase.PLAYING, Phase.RESOLVED):
            self._reject("restart", "wrong_phase")
            return
        self._transition("restart")
        self._enter_selection()

    @command
    def exit(self) -> None:
        if self.phase is Phase.IDLE:
            self._reject("exit", "wrong_phase")
            return
        self._transition("leave")
        self._discard_game()
        self._board = {}
        self._selected = self._confirmed = None
        self._selection_left = None
        self._emit("session_exited")

    @command
    def quick_start(self, card_id: int) -> None:
        """Skip selection: confirm ``card_id`` and start calling right away."""
        if self.phase not in (Phase.IDLE, Phase.SELECTING):
            self._reject("quick_start", "wrong_phase", card_id=card_id)
            return
        self._transition("quick_start")
        self._selected = self._confirmed = card_id
        self._selection_left = None
        self._start_game()

    # -------------------------------------------------------------- transitions

    def _transition(self, event: str) -> None:
        before = self.phase
        if not self._fsm.try_send(event):
            raise RuntimeError(f"Transition {event!r} not allowed from {before.value}")
        self._generation += 1
        self._cancel_all_timers()
        logger.debug("Phase %s -> %s (%s)", before.value, self.phase.value, event)

    def _enter_selection(self) -> None:
        self._discard_game()
        self._selected = self._confirmed = None
        p = self.settings.taken_probability
        self._board = {
            cid: self._rng.random() < p for cid in range(1, self.settings.card_id_max + 1)
        }
        self._selection_left = self.settings.selection_seconds
        available = sum(1 for taken in self._board.values() if not taken)
        logger.info("Selection opened: stake %d, %d cards available", self.stake, available)
        self._emit(
            "selection_started",
            stake=self.stake,
            seconds=self._selection_left,
            available=available,
        )
        self._start_timer(
            "selection",
            self.scheduler.call_every(1.0, self._guarded(self._on_selection_tick), name="selection"),
        )

    def _on_selection_tick(self) -> None:
        assert self._selection_left is not None
        self._selection_left -= 1
        self._emit("selection_tick", seconds_left=self._selection_left)
        if self._selection_left <= 0:
            self._transition("begin_game")
            self._start_game()

    def _start_game(self) -> None:
        self._discard_game()
        self._engine = CallEngine(self._rng)
        if self._confirmed is not None:
            try:
                self._card = PlayerCard.generate(self.catalog, self._confirmed, self._engine)
            except UnknownCard as exc:
                logger.warning("%s; continuing without a player card", exc)
                self._emit("card_unavailable", card_id=self._confirmed)
        self._game_left = self.settings.game_seconds
        logger.info(
            "Game started (%s)",
            f"card {self._card.card_id}" if self._card else "spectator",
        )
        self._emit(
            "game_started",
            card_id=self._card.card_id if self._card else None,
            spectator=self._card is None,
        )
        # cadence first so a call due on the final second still lands
        self._start_timer(
            "cadence",
            self.scheduler.call_every(
                self.settings.call_interval_seconds, self._guarded(self._on_cadence), name="cadence"
            ),
        )
        self._start_timer(
            "duration",
            self.scheduler.call_every(1.0, self._guarded(self._on_game_tick), name="duration"),
        )

    def _on_cadence(self) -> None:
        if self._engine is None:
            return
        try:
            call = self._engine.draw_next()
        except ExhaustedPool:
            logger.info("All numbers called")
            self._exhausted = True
            self._cancel_timer("cadence")
            self._emit("pool_exhausted")
            return
        self._emit("number_called", letter=call.letter, number=call.number, remaining=self._engine.remaining)

    def _on_game_tick(self) -> None:
        assert self._game_left is not None
        self._game_left -= 1
        self._emit("game_tick", seconds_left=self._game_left)
        if self._game_left <= 0:
            logger.info("Game time elapsed")
            self._resolve(Outcome.TIMEOUT)

    def _resolve(self, outcome: Outcome) -> None:
        self._transition("resolve")
        self._outcome = outcome
        self._claim_feedback = None
        self._emit("resolved", outcome=outcome.value)
        self._start_timer(
            "hold",
            self.scheduler.call_later(
                self.settings.resolve_hold_seconds, self._guarded(self._on_hold_done), name="hold"
            ),
        )

    def _on_hold_done(self) -> None:
        self._transition("restart")
        self._enter_selection()

    def _clear_feedback(self) -> None:
        self._claim_feedback = None
        self._emit("claim_feedback_cleared")

    def _discard_game(self) -> None:
        self._engine = None
        self._card = None
        self._outcome = None
        self._game_left = None
        self._exhausted = False
        self._bingo_available = False
        self._claim_feedback = None

    # ------------------------------------------------------------------- timers

    def _guarded(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Wrap a timer callback so it is dropped once its phase has ended."""
        generation = self._generation

        def run() -> None:
            if generation != self._generation:
                logger.debug("Dropped stale timer callback %s", callback.__name__)
                return
            callback()

        return run

    def _start_timer(self, name: str, handle: TimerHandle) -> None:
        self._cancel_timer(name)
        self._timers[name] = handle

    def _cancel_timer(self, name: str) -> None:
        handle = self._timers.pop(name, None)
        if handle is not None:
            handle.cancel()

    def _cancel_all_timers(self) -> None:
        for name in list(self._timers):
            self._cancel_timer(name)

    # ------------------------------------------------------------------- events

    def _emit(self, type_: str, **payload: Any) -> SessionEvent:
        event = SessionEvent(type=type_, phase=self.phase, at=self.scheduler.now(), payload=payload)
        for recorder in self._recorders:
            recorder.append(event)
        for listener in list(self._listeners):
            listener(event)
        return event

    def _reject(self, command_name: str, reason: str, **payload: Any) -> None:
        logger.debug("Rejected %s: %s", command_name, reason)
        self._emit("rejected", command=command_name, reason=reason, **payload)
