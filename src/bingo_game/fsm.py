from __future__ import annotations

from enum import Enum

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed


class Phase(str, Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    PLAYING = "playing"
    RESOLVED = "resolved"


class Outcome(str, Enum):
    WIN = "win"
    TIMEOUT = "timeout"


class SessionFSM(StateMachine):
    """Guards phase transitions; the session controller does the work.

    idle -> selecting -> playing -> resolved -> selecting, and any non-idle
    phase may leave straight to idle.
    """

    idle = State(Phase.IDLE.value, value=Phase.IDLE.value, initial=True)
    selecting = State(Phase.SELECTING.value, value=Phase.SELECTING.value)
    playing = State(Phase.PLAYING.value, value=Phase.PLAYING.value)
    resolved = State(Phase.RESOLVED.value, value=Phase.RESOLVED.value)

    start_play = idle.to(selecting)
    begin_game = selecting.to(playing)
    quick_start = idle.to(playing) | selecting.to(playing)
    resolve = playing.to(resolved)
    restart = playing.to(selecting) | resolved.to(selecting)
    leave = selecting.to(idle) | playing.to(idle) | resolved.to(idle)

    @property
    def phase(self) -> Phase:
        return Phase(str(self.current_state_value))

    def try_send(self, event: str) -> bool:
        """Fire ``event``; False when the current phase does not allow it."""
        try:
            self.send(event)
        except TransitionNotAllowed:
            return False
        return True
