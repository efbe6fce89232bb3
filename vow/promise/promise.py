# -*- coding: utf-8 -*-

import asyncio
from collections import namedtuple
from functools import partial
import logging

from ..common import config
from .errors import PendingError, RejectionError
from .scheduler import get_default_scheduler
from .state import (FULFILLED_STATUS, PENDING, PENDING_STATUS,
                    REJECTED_STATUS, Fulfilled, Rejected)
from .util import get_name, is_callable

_logger = logging.getLogger(__name__)


def _as_exception(reason):
    if isinstance(reason, BaseException):
        return reason
    return RejectionError(reason)


def _fire_all(scheduler, waiters, state):
    for index, waiter in enumerate(waiters):
        try:
            waiter.fire(state)
        except BaseException:
            # Only non-Exception errors (SystemExit, ...) reach this point.
            # The next waiters are still fired, in a new task.
            rest = waiters[index + 1:]
            if rest:
                scheduler.schedule_later(
                    partial(_fire_all, scheduler, rest, state))
            raise


class _Waiter(namedtuple('_Waiter', ['on_fulfilled', 'on_rejected',
                                     'resolve', 'reject'])):
    """Continuation registered on a promise by `then()`.

    It contains the handlers passed to `then()`, and the transition functions
    of the child promise. The parent promise keeps no other reference to its
    children.
    """
    __slots__ = ()

    def fire(self, state):
        if isinstance(state, Fulfilled):
            handler, settle = self.on_fulfilled, self.resolve
        else:
            handler, settle = self.on_rejected, self.reject

        if handler is None:
            return settle(state.payload)

        try:
            result = handler(state.payload)
        except Exception as error:
            return self.reject(error)

        # resolve() adopts the result if it's a Promise.
        self.resolve(result)


class Promise(object):
    """It represents an operation expected to be completed in the future.

    A Promise contains a value not yet known when the Promise is created. It
    allows to set handlers who will be called as soon as the result is known.
    It's a "promise" of a future value.

    A Promise is settled only once: it goes from the pending state to
    either the fulfilled state (with a value) or the rejected state (with a
    reason). Handlers are never called synchronously: they are executed by a
    scheduler (see `vow.promise.scheduler`), after the current code.
    """

    PENDING = PENDING_STATUS
    FULFILLED = FULFILLED_STATUS
    REJECTED = REJECTED_STATUS

    def __init__(self, executor, scheduler=None, _name=None):
        """Constructor of the Promise.

        Generate the two transition functions for the executor, then call the
        `executor`. It means the executor will be fully executed before the
        constructor returns.
        If the executor raises an exception, it's caught and the Promise is
        rejected with this exception.

        Args:
            executor (callable): Takes 2 callable arguments:
                The first one, `resolve()`, should be called when the Promise
                is fulfilled (ie the tasks is done) and must accept the
                result's value as its only argument. If this value is itself
                a Promise, the Promise will follow its state.
                The second, `reject()`, should be called when an error
                occurs. Its argument is the reason of the failure, usually an
                instance of `Exception`.
            scheduler (optional): object used to run the handlers later. By
                default, the scheduler returned by `get_default_scheduler()`.
                Promises chained to this one use the same scheduler.
            _name (str): if set, name used when converted to text.
        """
        self._state = PENDING
        self._waiters = []
        self._adopting = False
        if scheduler is None:
            scheduler = get_default_scheduler()
        self._scheduler = scheduler
        self._name = _name or get_name(executor)

        try:
            executor(self._resolve, self._reject)
        except Exception as error:
            self._reject(error)

    def _resolve(self, value):
        if not self._accept_transition('fulfill', value):
            return

        if value is self:
            self._settle(Rejected(
                TypeError('A promise cannot be resolved with itself.')))
        elif isinstance(value, Promise):
            _logger.debug('Promise %r adopts the state of %r', self, value)
            self._adopting = True
            value.then(self._fulfill, self._fail)
        else:
            self._settle(Fulfilled(value))

    def _reject(self, reason):
        if self._accept_transition('reject', reason):
            self._settle(Rejected(reason))

    def _fulfill(self, value):
        self._settle(Fulfilled(value))

    def _fail(self, reason):
        self._settle(Rejected(reason))

    def _accept_transition(self, action, payload):
        if self._state is not PENDING or self._adopting:
            _logger.warning('Try to %s Promise %r already settled. New value '
                            'will be ignored: %r', action, self, payload)
            return False
        return True

    def _settle(self, state):
        if self._state is not PENDING:
            return

        if (isinstance(state, Rejected) and
                not isinstance(state.reason, BaseException)):
            _logger.warning('Promise %r rejected with non-exception value: '
                            '%r', self, state.reason)

        # Scheduled before the transition: if the scheduler fails, the
        # promise stays pending with all its waiters.
        if self._waiters:
            self._scheduler.schedule_later(
                partial(_fire_all, self._scheduler, self._waiters, state))

        self._state = state
        # The waiters are released: nothing can be added after settlement.
        self._waiters = None

    @property
    def state(self):
        """Current state: `PENDING`, `Fulfilled(value)` or `Rejected(reason)`.
        """
        return self._state

    @property
    def status(self):
        """One of `Promise.PENDING`, `Promise.FULFILLED`, `Promise.REJECTED`.
        """
        return self._state.status

    @property
    def settled(self):
        return self._state is not PENDING

    @property
    def scheduler(self):
        return self._scheduler

    def then(self, on_fulfilled=None, on_rejected=None):
        """Create a new promise from handlers called when this one is settled.

        If the promise is fulfilled, the `on_fulfilled` handler will be
        called. Otherwise (the promise has been rejected), the `on_rejected`
        handler is called. Handlers are always called later, by the
        scheduler; never during the call to `then()`.
        In any case, the handler will define the state of the returned
        Promise. If the handler raises an exception, the new Promise is
        rejected with it. The handler can returns:
        - A value: the new promise will be fulfilled with this value.
        - Another Promise: when settled, will transfer its state (value or
            reason) to the Promise returned by this method.

        If a handler is not defined (or not callable), the state of the
        "self" promise is transferred to the new promise (the state and the
        value/reason).

        Args:
            on_fulfilled (callable, optional):  This handler will receive the
                result of the original promise as argument.
            on_rejected (callable, optional): This handler will receive the
                reason of the rejection of the original promise as argument.
        Returns:
            Promise<*>: new promise depending of self.
        """
        if not is_callable(on_fulfilled):
            on_fulfilled = None
        if not is_callable(on_rejected):
            on_rejected = None

        def chained_executor(resolve, reject):
            waiter = _Waiter(on_fulfilled, on_rejected, resolve, reject)
            if self._state is PENDING:
                self._waiters.append(waiter)
            else:
                self._scheduler.schedule_later(partial(waiter.fire,
                                                       self._state))

        if not on_rejected:
            name = get_name(on_fulfilled)
        elif not on_fulfilled:
            name = '<None, %s>' % get_name(on_rejected)
        else:
            name = '<%s, %s>' % (get_name(on_fulfilled),
                                 get_name(on_rejected))
        return Promise(chained_executor, scheduler=self._scheduler,
                       _name=name)

    def catch(self, on_rejected):
        """Create a new promise with a handler called when an error occurs.

        Alias of `self.then(None, on_rejected)`

        Args:
            on_rejected (callable): Will be called with the rejection reason
                if `self` is rejected.
        returns:
            Promise<*>: new Promise chained to `self`. If `self` is fulfilled,
                the promised value will be the same as `self`. Otherwise, the
                value returned by the `on_rejected()` handler.
        """
        return self.then(None, on_rejected)

    def result(self, max_tasks=None):
        """Get the result of the promise, running the scheduler if needed.

        If the promise is pending and its scheduler can be drained (like a
        `TaskQueue`), the scheduled tasks are executed until the promise is
        settled.

        Args:
            max_tasks (int, optional): maximum number of tasks to execute.
                Defaults to the 'max_drain_tasks' config entry (no limit).
        Returns:
            *: value encapsulated, defined by the operation.
        Raises:
            PendingError: if the promise is still pending after the run.
            *: If the promise is rejected, the rejection reason is raised.
                Reasons who are not exceptions are wrapped in a
                `RejectionError`.
        """
        state = self._wait(max_tasks)
        if isinstance(state, Rejected):
            raise _as_exception(state.reason)
        return state.value

    def exception(self, max_tasks=None):
        """Get the rejection reason, running the scheduler if needed.

        Args:
            max_tasks (int, optional): see `result()`.
        Returns:
            *: the reason of the rejection of the Promise.
            None: if the promise is fulfilled.
        Raises:
            PendingError: if the promise is still pending after the run.
        """
        state = self._wait(max_tasks)
        if isinstance(state, Rejected):
            return state.reason
        return None

    def _wait(self, max_tasks):
        if self._state is PENDING:
            run_until = getattr(self._scheduler, 'run_until', None)
            if run_until is not None:
                if max_tasks is None:
                    max_tasks = config.get('max_drain_tasks')
                run_until(lambda: self._state is not PENDING, max_tasks)

        if self._state is PENDING:
            raise PendingError('%r is still pending' % self)
        return self._state

    def __await__(self):
        """Wait for the promise from an asyncio coroutine.

        The handlers must be executed by the scheduler for the await to
        finish: the scheduler should be an `AsyncioScheduler` running on the
        same loop.
        """
        future = asyncio.get_running_loop().create_future()

        def on_fulfilled(value):
            if not future.done():
                future.set_result(value)

        def on_rejected(reason):
            if not future.done():
                future.set_exception(_as_exception(reason))

        self.then(on_fulfilled, on_rejected)
        return future.__await__()

    def __repr__(self):
        return 'Promise(%s %s)' % (self._name, self._state.short)

    @classmethod
    def resolve(cls, value, scheduler=None):
        """Create a promise who resolves the selected value.

        Args:
            value: result of the promise. If it's a promise, the new promise
                will follow its state: a Promise is never fulfilled with
                another Promise.
            scheduler (optional): scheduler of the new promise.
        Returns:
            Promise: new Promise, already fulfilled with the value passed in
                parameter, or following the promise passed in parameter.
        """
        return cls(lambda ok, error: ok(value), scheduler=scheduler,
                   _name='RESOLVE')

    @classmethod
    def reject(cls, reason, scheduler=None):
        """Create a Promise rejected for the reason specified.

        Unlike `resolve()`, a Promise passed as reason is not followed: it
        becomes the rejection reason as is.

        Args:
            reason: reason set to the Promise, usually an Exception.
            scheduler (optional): scheduler of the new promise.
        Returns:
            Promise: new Promise already rejected.
        """
        return cls(lambda ok, error: error(reason), scheduler=scheduler,
                   _name='REJECT')

    @classmethod
    def _to_promises(cls, values, scheduler):
        return [value if isinstance(value, Promise)
                else cls.resolve(value, scheduler=scheduler)
                for value in values]

    @classmethod
    def all(cls, promises, in_order=True, scheduler=None):
        """Create a Promise who wait a list of promises to be all fulfilled.

        The resulting Promise resolve when all of the promises in the list
        are resolved, and returns a list of all the resulting values.
        If a promise is rejected, then the resulting promise is rejected with
        the same reason, and all results from other promises are ignored.

        Args:
            promises (iterable): promises to wait. Values who are not
                promises are considered as already fulfilled promises.
            in_order (boolean, optional): if True (default), the result list
                keeps the order of the promise list. If False, values are
                listed in the order the promises have been fulfilled.
            scheduler (optional): scheduler of the new promise.
        Returns:
            Promise<list>: resulting promise, fulfilled when all promises
                are fulfilled, or rejected as soon as one of the promises is
                rejected. An empty list gives a promise fulfilled with `[]`.
        """
        promises = cls._to_promises(promises, scheduler)
        if not promises:
            return cls.resolve([], scheduler=scheduler)

        has_error = [False]
        remaining_tasks = [len(promises)]
        if in_order:
            results = [None] * len(promises)
        else:
            results = []

        def executor(resolve, reject):
            def resolve_one_promise(index, value):
                if has_error[0]:
                    return
                if in_order:
                    results[index] = value
                else:
                    results.append(value)
                remaining_tasks[0] -= 1
                if remaining_tasks[0] == 0:
                    resolve(results)

            def reject_one_promise(reason):
                if has_error[0]:
                    return
                has_error[0] = True
                reject(reason)

            for index, p in enumerate(promises):
                p.then(partial(resolve_one_promise, index), reject_one_promise)

        return cls(executor, scheduler=scheduler, _name='ALL')

    @classmethod
    def race(cls, promises, scheduler=None):
        """Settle a new promise with the fastest of the promises.

        The resulting Promise will be settled as soon as one of the promises
        is settled. Result value or rejection reason of the finished promise
        are transmitted. All other Promise results are ignored.

        Args:
            promises (iterable): promises to race. Values who are not
                promises are considered as already fulfilled promises.
            scheduler (optional): scheduler of the new promise.
        Returns:
            Promise: a promise. If the promise list is empty, it's rejected
                with a ValueError.
        """
        promises = cls._to_promises(promises, scheduler)
        if not promises:
            return cls.reject(ValueError('Empty promise list in '
                                         'Promise.race()'),
                              scheduler=scheduler)

        is_settled = [False]

        def executor(resolve, reject):
            def resolve_once(value):
                if is_settled[0]:
                    return
                is_settled[0] = True
                resolve(value)

            def reject_once(reason):
                if is_settled[0]:
                    return
                is_settled[0] = True
                reject(reason)

            for p in promises:
                p.then(resolve_once, reject_once)

        return cls(executor, scheduler=scheduler, _name='RACE')
