"""Headless driver: plays one session on a virtual clock with a marking bot."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .catalog import CardCatalog
from .config import SessionSettings
from .fsm import Phase
from .rng import RandomSource
from .session import GameSession, SessionEvent
from .timers import VirtualScheduler

logger = logging.getLogger(__name__)


class AutoPlayer:
    """Marks every called number that is on the card and claims on bingo."""

    def __init__(self, session: GameSession, *, claim: bool = True):
        self.session = session
        self.claim = claim
        self.unsubscribe = session.subscribe(self._on_event)

    def _on_event(self, event: SessionEvent) -> None:
        if event.type == "number_called":
            card = self.session.card
            if card is not None and event.payload["number"] in card.numbers:
                self.session.toggle_mark(event.payload["number"])
        elif event.type == "bingo_available" and self.claim:
            self.session.claim_win()


@dataclass
class SimulationResult:
    outcome: Optional[str]
    card_id: Optional[int]
    calls: List[int]
    marked: List[int]
    elapsed: float
    events: List[SessionEvent] = field(default_factory=list)

    def summary(self) -> Dict[str, object]:
        return {
            "outcome": self.outcome,
            "card_id": self.card_id,
            "calls": self.calls,
            "marked": self.marked,
            "elapsed": self.elapsed,
        }


def run_simulation(
    *,
    settings: SessionSettings,
    catalog: CardCatalog,
    rng: RandomSource,
    card_id: Optional[int] = None,
    spectator: bool = False,
    claim: bool = True,
) -> SimulationResult:
    """Play one selection-plus-game round and stop once it is resolved.

    Without ``card_id`` the bot picks a random untaken card present in the
    catalog; ``spectator`` skips confirmation entirely.
    """
    scheduler = VirtualScheduler()
    session = GameSession(settings=settings, catalog=catalog, scheduler=scheduler, rng=rng)
    events: List[SessionEvent] = []
    session.subscribe(events.append)
    AutoPlayer(session, claim=claim)

    session.start_play()
    if not spectator:
        view = session.snapshot()
        if card_id is None:
            candidates = [c for c in view.card_ids if c not in view.taken_ids and c in catalog]
            card_id = rng.choice(candidates) if candidates else None
        if card_id is not None:
            picked = session.select_card(card_id) + session.confirm_card()
            rejected = [e for e in picked if e.type == "rejected"]
            if rejected:
                logger.warning("Could not take card %s: %s", card_id, rejected[0].payload["reason"])

    # step timer by timer so the round stops exactly where it resolves
    while session.phase is not Phase.RESOLVED:
        due = scheduler.next_due()
        if due is None:
            raise RuntimeError("Session stalled with no pending timers")
        scheduler.advance(due - scheduler.now())

    engine = session.engine
    player_card = session.card
    return SimulationResult(
        outcome=session.snapshot().outcome.value,  # type: ignore[union-attr]
        card_id=player_card.card_id if player_card else None,
        calls=list(engine.history) if engine else [],
        marked=sorted(player_card.marked_numbers()) if player_card else [],
        elapsed=scheduler.now(),
        events=events,
    )
