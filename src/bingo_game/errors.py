"""Error taxonomy for the bingo engine.

None of these are fatal for a session: components raise them and the session
controller turns them into rejection events.
"""

from __future__ import annotations


class BingoError(Exception):
    """Base class for engine errors."""


class UnknownCard(BingoError, LookupError):
    def __init__(self, card_id: int):
        super().__init__(f"Card not found in catalog: {card_id}")
        self.card_id = card_id


class InvalidLayout(BingoError, ValueError):
    pass


class ExhaustedPool(BingoError):
    def __init__(self) -> None:
        super().__init__("All numbers have been called")


class NotYetCalled(BingoError):
    def __init__(self, number: int):
        super().__init__(f"Number {number} has not been called yet")
        self.number = number


class NotOnCard(BingoError, LookupError):
    def __init__(self, number: object):
        super().__init__(f"Number {number} is not on this card")
        self.number = number


class NotYetWinning(BingoError):
    def __init__(self) -> None:
        super().__init__("No completed line on the card")
