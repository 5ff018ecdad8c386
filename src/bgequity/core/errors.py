"""Exceptions raised by the game model and the evaluator.

All of them are contract violations: a caller asked for something the rules
do not allow. None of them is retried or recovered from internally.
"""


class BackgammonError(ValueError):
    """Base class for all bgequity errors."""


class IllegalMoveError(BackgammonError):
    """A checker mutation whose precondition does not hold."""


class IllegalActionError(BackgammonError):
    """An action that is not legal in the controller's current state."""


class UnsupportedMatchLengthError(BackgammonError):
    """The match length is outside what the match equity table covers."""


class InvalidStateStringError(BackgammonError):
    """A canonical state string that cannot be parsed."""


class CyclicPositionError(BackgammonError):
    """A state recurs inside its own game tree, so it has no finite expansion."""
