# -*- coding: utf-8 -*-


class PromiseError(Exception):
    """Base class of the errors raised by the promise module itself."""
    pass


class PendingError(PromiseError):
    """The promise is still pending and no queued work can settle it."""
    pass


class RejectionError(PromiseError):
    """Raised in place of a rejection reason who is not an exception.

    Attributes:
        reason: the original rejection reason.
    """

    def __init__(self, reason):
        PromiseError.__init__(self, reason)
        self.reason = reason

    def __str__(self):
        return 'Promise rejected with non-exception value: %r' % (self.reason,)
