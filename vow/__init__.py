# -*- coding: utf-8 -*-

from .__version__ import __version__  # noqa

from .common import config
from .common import log
from .promise import (AsyncioScheduler, Deferred, PendingError, Promise,
                      PromiseError, RejectionError, TaskQueue,
                      get_default_scheduler, reduce_coroutine,
                      set_default_scheduler, wrap_promise)

__all__ = ['AsyncioScheduler', 'Deferred', 'PendingError', 'Promise',
           'PromiseError', 'RejectionError', 'TaskQueue', 'configure',
           'get_default_scheduler', 'reduce_coroutine',
           'set_default_scheduler', 'wrap_promise']


def configure():
    """Load the config file and apply it.

    The log levels are set from the 'debug_mode' and 'log_levels' entries,
    and the default scheduler will be re-created from the 'scheduler' entry
    at its next use.
    """
    config.load()
    log.set_debug_mode(config.get('debug_mode'))
    log.set_logs_level(config.get('log_levels'))
    set_default_scheduler(None)
