"""Single-player bingo engine: card catalog, caller, marks, win checks and sessions."""

from .calls import Call, CallEngine, letter_for
from .card import PlayerCard
from .catalog import CardCatalog, default_catalog, load_catalog
from .config import SessionSettings
from .errors import ExhaustedPool, NotOnCard, NotYetCalled, NotYetWinning, UnknownCard
from .fsm import Outcome, Phase
from .session import GameSession, SessionEvent, SessionView
from .version import __version__
from .win import has_win, winning_lines

__all__ = [
    "Call",
    "CallEngine",
    "CardCatalog",
    "ExhaustedPool",
    "GameSession",
    "NotOnCard",
    "NotYetCalled",
    "NotYetWinning",
    "Outcome",
    "Phase",
    "PlayerCard",
    "SessionEvent",
    "SessionSettings",
    "SessionView",
    "UnknownCard",
    "__version__",
    "default_catalog",
    "has_win",
    "letter_for",
    "load_catalog",
    "winning_lines",
]
