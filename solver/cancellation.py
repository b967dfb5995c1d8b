# solver/cancellation.py

import threading
import time

from problem.errors import CancelledError


class CancellationToken:
    """
    Caller-owned abort signal checked by the solver at every search node.
    timeout: optional number of seconds after which the token counts as cancelled
    parent: optional token whose cancellation also cancels this one

    Example usage:
      token = CancellationToken(timeout=30)
      solver = SetCoverBranchAndBoundSolver(model, cancel_token=token)
      # from another thread: token.cancel()
    """

    def __init__(self, timeout=None, parent=None):
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None
        self.parent = parent

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        return self._reason() is not None

    def _reason(self):
        if self._event.is_set():
            return "search cancelled by caller"
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return "search deadline expired"
        if self.parent is not None:
            return self.parent._reason()
        return None

    def check(self):
        reason = self._reason()
        if reason is not None:
            raise CancelledError(reason)
