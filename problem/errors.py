# problem/errors.py


class SetCoverError(Exception):
    """Base class for every error raised by the cover engine."""


class InvalidInputError(SetCoverError, ValueError):
    """Malformed distance matrix, threshold, costs or solver options."""


class InfeasibleInstanceError(SetCoverError):
    """
    Some universe element is covered by no candidate.
    elements: labels of the offending elements
    """
    def __init__(self, message, elements=()):
        super().__init__(message)
        self.elements = tuple(elements)


class CancelledError(SetCoverError):
    """Search aborted by a cancellation token, deadline or node limit."""


class InvariantViolationError(SetCoverError, AssertionError):
    """A returned cover broke an internal invariant. Always a bug."""
