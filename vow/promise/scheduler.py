# -*- coding: utf-8 -*-

"""Schedulers used by the promises to run their handlers later.

A scheduler is any object with a `schedule_later(task)` method. The task is a
callable without argument; it must run after the current synchronous
execution, and tasks must run in the order they have been scheduled.

Two implementations are provided:
- `TaskQueue`, a simple FIFO queue drained by the caller. It's the default
  one, and allows to run promise chains synchronously (tests, scripts).
- `AsyncioScheduler`, who defers the tasks to an asyncio event loop.
"""

import asyncio
from collections import deque
import logging

from ..common import config

_logger = logging.getLogger(__name__)


def _exec_task(task):
    try:
        task()
    except Exception:
        _logger.exception('Scheduled task %r raise an exception!', task)


class TaskQueue(object):
    """FIFO queue of tasks, executed on demand by the owner of the queue.

    Nothing runs by itself: the tasks are executed when one of the `run_*`
    methods is called. Tasks scheduled while the queue is running are
    appended at the end and are executed in the same run.
    """

    def __init__(self):
        self._tasks = deque()

    def __len__(self):
        return len(self._tasks)

    def __repr__(self):
        return 'TaskQueue(%s tasks)' % len(self._tasks)

    def schedule_later(self, task):
        self._tasks.append(task)

    def run_once(self):
        """Execute the oldest task of the queue.

        Returns:
            boolean: False if the queue was empty, True otherwise.
        """
        if not self._tasks:
            return False
        _exec_task(self._tasks.popleft())
        return True

    def run_until_idle(self, max_tasks=None):
        """Execute tasks until the queue is empty.

        Args:
            max_tasks (int, optional): if set, stop after this number of
                tasks, even if the queue is not empty.
        Returns:
            int: number of tasks executed.
        """
        count = 0
        while max_tasks is None or count < max_tasks:
            if not self.run_once():
                break
            count += 1
        return count

    def run_until(self, predicate, max_tasks=None):
        """Execute tasks until a condition is met, or the queue is empty.

        Args:
            predicate (callable): checked before each task.
            max_tasks (int, optional): maximum number of tasks to execute.
        Returns:
            boolean: the final value of `predicate()`.
        """
        count = 0
        while not predicate():
            if max_tasks is not None and count >= max_tasks:
                break
            if not self.run_once():
                break
            count += 1
        return bool(predicate())


class AsyncioScheduler(object):
    """Scheduler running the tasks in an asyncio event loop.

    Tasks are passed to `loop.call_soon()`, which preserves their order.
    The loop is chosen once, when the scheduler is created: tasks can be
    scheduled before the loop runs, and they are executed as soon as it's
    started.
    """

    def __init__(self, loop=None):
        """
        Args:
            loop (AbstractEventLoop, optional): loop used to run the tasks.
                By default, the running loop. If no loop is running, a new
                loop is created; it's available through the `loop`
                attribute, and must be run by the caller.
        """
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = asyncio.new_event_loop()
                _logger.debug('No running event loop: new loop %r created',
                              loop)
        self._loop = loop

    def __repr__(self):
        return 'AsyncioScheduler(%r)' % self._loop

    @property
    def loop(self):
        return self._loop

    def schedule_later(self, task):
        self._loop.call_soon(_exec_task, task)


_default_scheduler = None


def _create_scheduler(kind):
    if kind == 'asyncio':
        return AsyncioScheduler()
    if kind != 'queue':
        _logger.warning('Unknown scheduler kind "%s". A TaskQueue will be '
                        'used instead.', kind)
    return TaskQueue()


def get_default_scheduler():
    """Returns the scheduler used by promises created without one.

    It's created at first use, according to the 'scheduler' config entry.
    """
    global _default_scheduler

    if _default_scheduler is None:
        _default_scheduler = _create_scheduler(config.get('scheduler'))
        _logger.debug('Default scheduler is %r', _default_scheduler)
    return _default_scheduler


def set_default_scheduler(scheduler):
    """Replace the default scheduler.

    Promises already created keep the scheduler they have been created with.

    Args:
        scheduler: the new default scheduler. If None, a new one will be
            created from the config at the next use.
    """
    global _default_scheduler

    _default_scheduler = scheduler
