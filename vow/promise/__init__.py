# -*- coding: utf-8 -*-

from .decorators import wrap_promise
from .deferred import Deferred
from .errors import PendingError, PromiseError, RejectionError
from .promise import Promise
from .reduce_coroutine import reduce_coroutine
from .scheduler import (AsyncioScheduler, TaskQueue, get_default_scheduler,
                        set_default_scheduler)
from .state import PENDING, Fulfilled, Rejected

__all__ = ['AsyncioScheduler', 'Deferred', 'Fulfilled', 'PENDING',
           'PendingError', 'Promise', 'PromiseError', 'Rejected',
           'RejectionError', 'TaskQueue', 'get_default_scheduler',
           'reduce_coroutine', 'set_default_scheduler', 'wrap_promise']
