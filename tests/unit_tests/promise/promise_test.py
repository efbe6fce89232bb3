# -*- coding: utf-8 -*-

import logging
import pytest
import random

from vow.promise import (PENDING, Fulfilled, PendingError, Promise,
                         Rejected, RejectionError, TaskQueue)


class Err(Exception):
    pass


class TestPromise(object):

    def test_synchronous_call(self):
        """Make a Promise fulfilled by a synchronous executor and get result"""

        def executor(on_fulfilled, on_rejected):
            on_fulfilled(3)

        p = Promise(executor)

        assert p.status == Promise.FULFILLED
        assert p.result() == 3

    def test_synchronous_call_failing(self):
        """Make a Promise rejected by a synchronous executor and get result."""

        def executor(on_fulfilled, on_rejected):
            on_rejected(Err())

        p = Promise(executor)
        assert p.status == Promise.REJECTED
        with pytest.raises(Err):
            p.result()

    def test_executor_raising_error(self):
        """The error raised by the executor becomes the rejection reason."""
        error = Err()

        def executor(on_fulfilled, on_rejected):
            raise error

        p = Promise(executor)
        assert p.status == Promise.REJECTED
        assert p.exception() is error

    def test_executor_raising_keyboard_interrupt(self):
        """Only instances of Exception are converted into rejections."""

        def executor(on_fulfilled, on_rejected):
            raise KeyboardInterrupt()

        with pytest.raises(KeyboardInterrupt):
            Promise(executor)

    def test_get_error_fulfilled_promise(self):
        """Get the exception of a fulfilled Promise."""
        p = Promise(lambda ok, error: ok('result value'))
        assert p.exception() is None

    def test_pending_promise(self):
        """Get the result of a Promise who will never be settled."""
        p = Promise(lambda ok, error: None)

        assert p.status == Promise.PENDING
        assert not p.settled
        with pytest.raises(PendingError):
            p.result()
        with pytest.raises(PendingError):
            p.exception()

    def test_asynchronous_call(self):
        """Make a Promise fulfilled after its creation."""
        _fulfill = []

        p = Promise(lambda ok, error: _fulfill.append(ok))
        assert p.status == Promise.PENDING

        _fulfill[0]('OK')
        assert p.settled
        assert p.result() == 'OK'

    def test_state_holds_payload(self):
        assert Promise.resolve(5).state == Fulfilled(5)
        error = Err()
        assert Promise.reject(error).state == Rejected(error)
        assert Fulfilled(5) != Rejected(5)

    def test_settle_only_once(self, task_queue):
        """Subsequent calls to resolve() or reject() have no effect."""
        _callbacks = []
        values = []

        p = Promise(lambda ok, error: _callbacks.extend([ok, error]))
        p.then(values.append)

        ok, error = _callbacks
        ok(1)
        assert len(task_queue) == 1

        ok(2)
        error(Err())
        assert len(task_queue) == 1
        assert p.state == Fulfilled(1)

        task_queue.run_until_idle()
        assert values == [1]

    def test_settle_twice_is_logged(self, caplog):
        _callbacks = []
        Promise(lambda ok, error: _callbacks.extend([ok, error]))

        ok, error = _callbacks
        error(Err())
        with caplog.at_level(logging.WARNING):
            ok(3)
        assert 'already settled' in caplog.text

    def test_resolve_with_itself(self):
        _fulfill = []
        p = Promise(lambda ok, error: _fulfill.append(ok))

        _fulfill[0](p)
        assert isinstance(p.exception(), TypeError)

    def test_resolve_with_promise_locks_the_promise(self):
        """Once following another promise, the promise ignores new values."""
        _callbacks = []
        _inner_fulfill = []
        inner = Promise(lambda ok, error: _inner_fulfill.append(ok))
        p = Promise(lambda ok, error: _callbacks.extend([ok, error]))

        ok, error = _callbacks
        ok(inner)
        ok('ignored')
        error(Err())
        assert p.status == Promise.PENDING

        _inner_fulfill[0]('inner value')
        assert p.result() == 'inner value'

    def test_result_of_non_exception_rejection(self):
        p = Promise.reject('boom')

        with pytest.raises(RejectionError) as exc_info:
            p.result()
        assert exc_info.value.reason == 'boom'
        assert p.exception() == 'boom'

    def test_result_with_max_tasks(self):
        p = Promise.resolve(1).then(lambda v: v + 1)

        with pytest.raises(PendingError):
            p.result(max_tasks=0)
        assert p.result() == 2

    def test_repr(self):
        assert repr(Promise.resolve(1)) == 'Promise(RESOLVE F)'
        assert repr(Promise.reject(Err())) == 'Promise(REJECT R)'

        def my_task(ok, error):
            pass

        assert repr(Promise(my_task)) == 'Promise(my_task P)'


class TestThenMethod(object):

    def test_then_is_never_synchronous(self, task_queue):
        """Chain a handler on a fulfilled Promise: it's called later."""
        calls = []

        def _callback(arg):
            calls.append(arg)
            return arg * 2

        p = Promise(lambda ok, error: ok(23))
        p2 = p.then(_callback)

        assert isinstance(p2, Promise)
        assert p2 is not p
        assert calls == []
        assert p2.status == Promise.PENDING
        assert len(task_queue) == 1

        assert p2.result() == 46
        assert calls == [23]
        assert p.result() == 23

    def test_then_async_call(self):
        """Chain a handler using then() on an not-yet fulfilled Promise."""
        _fulfill = []
        calls = []

        def _callback(arg):
            calls.append(arg)
            return arg * 2

        p = Promise(lambda ok, error: _fulfill.append(ok))
        p2 = p.then(_callback)
        _fulfill[0](23)

        # The handler is scheduled, not executed by resolve().
        assert calls == []
        assert p2.result() == 46

    def test_increment_value(self):
        p = Promise(lambda resolve, reject: resolve(5)).then(lambda v: v + 1)
        assert p.result() == 6

    def test_rejection_handled(self):
        p = Promise(lambda resolve, reject: reject('boom'))
        p2 = p.then(None, lambda reason: reason)

        assert p2.result() == 'boom'
        assert p2.status == Promise.FULFILLED

    def test_then_without_handler_on_fulfilled_promise(self):
        p = Promise.resolve('value').then()
        assert p.result() == 'value'

    def test_then_without_handler_on_rejected_promise(self):
        error = Err()
        p = Promise.reject(error).then()

        assert p.exception() is error
        assert p.status == Promise.REJECTED

    def test_then_with_non_callable_handlers(self):
        assert Promise.resolve(4).then(42, 'x').result() == 4

        error = Err()
        assert Promise.reject(error).then(42, 'x').exception() is error

    def test_then_on_failing_promise(self):
        """Chain a handler using then() to a Promise raising an exception"""

        def _task(ok, error):
            raise Err()

        def _callback(__):
            assert not 'This should not be executed.'

        p2 = Promise(_task).then(_callback)
        with pytest.raises(Err):
            p2.result()

    def test_then_on_failing_async_promise(self):
        """Chain a handler using then() to a Promise who will be rejected."""
        _reject = []

        def _callback(__):
            assert not 'This should not be executed.'

        p = Promise(lambda ok, error: _reject.append(error))
        p2 = p.then(_callback)
        _reject[0](Err())
        with pytest.raises(Err):
            p2.result()

    def test_handler_raising_error(self):
        """The error raised by a handler is the reason of the child."""
        error = Err()

        def _callback(value):
            raise error

        p = Promise.resolve(1).then(_callback)
        assert p.exception() is error

    def test_error_handler_raising_error(self):
        """The error raised by an error handler is the reason of the child."""
        error = Err()

        def on_error(reason):
            raise error

        p = Promise.reject(ValueError()).then(None, on_error)
        assert p.exception() is error

    def test_then_with_promise_factory(self):
        """Chain a Promise factory, using then().

        a Promise factory is a function who returns a Promise.
        """

        def factory(value):
            return Promise(lambda ok, error: ok(value * value))

        p2 = Promise(lambda ok, error: ok(6)).then(factory)
        assert p2.result() == 36

    def test_then_with_nested_promises(self):
        """The child of then() is never fulfilled with a Promise."""

        def factory(value):
            return Promise.resolve(Promise.resolve(value).then(
                lambda v: Promise.resolve(v + 1)))

        p = Promise.resolve(7).then(factory)
        result = p.result()
        assert not isinstance(result, Promise)
        assert result == 8

    def test_then_with_pending_promise_factory(self):
        _fulfill = []

        def factory(value):
            return Promise(lambda ok, error: _fulfill.append(ok))

        p = Promise.resolve(1).then(factory)
        with pytest.raises(PendingError):
            p.result()

        _fulfill[0]('later')
        assert p.result() == 'later'

    def test_then_with_rejected_promise_factory(self):
        error = Err()
        p = Promise.resolve(1).then(lambda v: Promise.reject(error))
        assert p.exception() is error

    def test_error_handler_returning_promise(self):
        """A Promise returned by the error handler is followed too."""
        p = Promise.reject(Err()).then(
            None, lambda reason: Promise.resolve('recovered'))
        assert p.result() == 'recovered'

    def test_then_with_error_callback_on_fulfilled_promise(self):
        """Only the success handler should be called."""
        def on_success(value):
            return value * 3

        def on_error(err):
            raise Exception('This should never be called!')

        p2 = Promise(lambda ok, error: ok(654)).then(on_success, on_error)
        assert p2.result() == 1962

    def test_then_with_error_callback_on_rejected_promise(self):
        """Only the error handler should be called.

        The resulting Promise will (successfully) resolve with the value
        returned by the error handler.
        """
        def on_success(value):
            raise Exception('This should never be called!')

        def on_error(err):
            assert type(err) is Err
            return 38

        p = Promise(lambda ok, error: error(Err()))
        p2 = p.then(on_success, on_error)
        assert p2.result() == 38

    def test_catch(self):
        def on_error(err):
            assert isinstance(err, Err)
            return 8

        assert Promise.reject(Err()).catch(on_error).result() == 8
        assert Promise.resolve(185).catch(on_error).result() == 185

    def test_handlers_order_on_pending_promise(self, task_queue):
        _fulfill = []
        calls = []

        p = Promise(lambda ok, error: _fulfill.append(ok))
        p.then(lambda v: calls.append('a'))
        p.then(lambda v: calls.append('b'))
        p.then(lambda v: calls.append('c'))

        _fulfill[0](1)
        assert calls == []
        task_queue.run_until_idle()
        assert calls == ['a', 'b', 'c']

    def test_handlers_order_on_rejected_promise(self, task_queue):
        _reject = []
        calls = []

        p = Promise(lambda ok, error: _reject.append(error))
        p.then(None, lambda r: calls.append('a'))
        p.then(None, lambda r: calls.append('b'))

        _reject[0](Err())
        task_queue.run_until_idle()
        assert calls == ['a', 'b']

    def test_handlers_order_on_settled_promise(self, task_queue):
        calls = []

        p = Promise.resolve(1)
        p.then(lambda v: calls.append('a'))
        p.then(lambda v: calls.append('b'))

        task_queue.run_until_idle()
        assert calls == ['a', 'b']

    def test_handlers_called_once(self, task_queue):
        calls = []
        p = Promise.resolve(1)
        p.then(calls.append)

        task_queue.run_until_idle()
        task_queue.run_until_idle()
        assert calls == [1]

    def test_handler_raising_system_exit(self, task_queue):
        _fulfill = []
        calls = []

        def exit_handler(value):
            raise SystemExit()

        p = Promise(lambda ok, error: _fulfill.append(ok))
        p.then(exit_handler)
        p.then(calls.append)

        _fulfill[0](3)
        with pytest.raises(SystemExit):
            task_queue.run_until_idle()
        assert calls == []

        task_queue.run_until_idle()
        assert calls == [3]

    def test_settle_with_failing_scheduler(self):
        queue = TaskQueue()

        class FlakyScheduler(object):
            failures = 1

            def schedule_later(self, task):
                if self.failures:
                    self.failures -= 1
                    raise RuntimeError('scheduler unavailable')
                queue.schedule_later(task)

        _fulfill = []
        p = Promise(lambda ok, error: _fulfill.append(ok),
                    scheduler=FlakyScheduler())
        p2 = p.then(lambda v: v * 2)

        with pytest.raises(RuntimeError):
            _fulfill[0](4)
        assert p.state is PENDING

        _fulfill[0](4)
        queue.run_until_idle()
        assert p.state == Fulfilled(4)
        assert p2.state == Fulfilled(8)

    def test_chain_uses_parent_scheduler(self, task_queue):
        queue = TaskQueue()
        p = Promise.resolve(2, scheduler=queue)
        p2 = p.then(lambda v: v * 5)

        assert p2.scheduler is queue
        assert len(task_queue) == 0
        assert len(queue) == 1
        assert p2.result() == 10


class TestStaticMethods(object):

    def test_resolve_value(self):
        """Wrap a value into a Promise using Promise.resolve()."""
        p = Promise.resolve('xyz')
        assert p.status == Promise.FULFILLED
        assert p.result() == 'xyz'

    def test_resolve_promise(self):
        """Use Promise.resolve() on an object who is already a Promise."""
        inner = Promise.resolve(3)
        p = Promise.resolve(inner)

        assert p is not inner
        result = p.result()
        assert not isinstance(result, Promise)
        assert result == 3

    def test_resolve_rejected_promise(self):
        error = Err()
        p = Promise.resolve(Promise.reject(error))
        assert p.exception() is error

    def test_reject(self):
        error = Err()
        p = Promise.reject(error)

        assert p.status == Promise.REJECTED
        assert p.exception() is error

    def test_reject_with_promise(self):
        """Promise.reject() doesn't follow a Promise passed as reason."""
        inner = Promise.resolve(1)
        p = Promise.reject(inner)
        assert p.exception() is inner


class TestGroupPromiseMethods(object):
    """Test the method which manipulate group of promises."""

    def test_method_all_with_empty_set(self):
        p = Promise.all([])
        assert p.status == Promise.FULFILLED
        assert p.result() == []

    def test_method_all_with_one_promise(self):
        p = Promise.all([Promise.resolve('RESULT')])
        assert p.result() == ['RESULT']

    def test_method_all_with_one_rejected_promise(self):
        p = Promise.all([Promise.reject(Err())])

        with pytest.raises(Err):
            p.result()

    def test_method_all_with_several_promises(self):
        promises = [Promise.resolve(1) for _ in range(0, 20)]

        p = Promise.all(promises)

        assert p.result() == [1] * 20

    def test_method_all_with_rejected_promise(self):
        p = Promise.all([Promise.resolve(1), Promise.reject('x'),
                         Promise.resolve(2)])
        assert p.exception() == 'x'

    def test_method_all_first_rejection_wins(self):
        _reject = []

        promises = [Promise(lambda ok, error: _reject.append(error))
                    for _ in range(0, 3)]
        p = Promise.all(promises)

        first_error = Err()
        _reject[2](first_error)
        _reject[0](ValueError())
        assert p.exception() is first_error

    def test_method_all_with_values(self):
        p = Promise.all(iter([1, Promise.resolve(2), 'three']))
        assert p.result() == [1, 2, 'three']

    def test_method_all_with_async_promises(self):
        promises = [Promise.resolve(1) for _ in range(0, 5)]

        _resolve_callback = []
        promises.append(Promise(lambda ok, _err: _resolve_callback.append(ok)))

        p = Promise.all(promises)

        # The ALL promise is not yet resolved.
        with pytest.raises(PendingError):
            p.result()

        _resolve_callback[0]('OK')

        # Now, all sub-promises are resolved.
        assert p.result() == [1, 1, 1, 1, 1, 'OK']

    def test_method_all_must_keep_order(self):
        promises = []
        _resolve_callback = []

        for i in range(0, 25):
            def _promise_init(ok, _error):
                # Will resolve with the increment value.
                local_i = i
                _resolve_callback.append(lambda: ok(local_i))

            promises.append(Promise(_promise_init))

        # promises are ordered.
        p = Promise.all(promises)

        # Resolves the promises in a random order
        random.shuffle(_resolve_callback)
        for callback in _resolve_callback:
            callback()

        assert p.result() == list(range(0, 25))

    def test_method_all_in_completion_order(self):
        _resolve_callback = []
        promises = [Promise(lambda ok, error: _resolve_callback.append(ok))
                    for _ in range(0, 3)]

        p = Promise.all(promises, in_order=False)

        _resolve_callback[2]('c')
        _resolve_callback[0]('a')
        _resolve_callback[1]('b')

        assert p.result() == ['c', 'a', 'b']

    def test_method_race_with_empty_set(self):
        p = Promise.race([])
        assert isinstance(p, Promise)
        assert isinstance(p.exception(), ValueError)

    def test_method_race_with_one_promise(self):
        p = Promise.race([Promise.resolve('RESULT')])
        assert p.result() == 'RESULT'

    def test_method_race_with_never_settled_promise(self):
        never = Promise(lambda ok, error: None)
        p = Promise.race([never, Promise.resolve(9)])
        assert p.result() == 9

    def test_method_race_with_several_promises(self):
        _resolve_callback = []

        def _async_promise(ok, _error):
            _resolve_callback.append(ok)

        # Add non-resolving promises.
        promises = [Promise(lambda _ok, _err: None) for _ in range(0, 5)]

        promises.append(Promise(_async_promise))
        promises.append(Promise(_async_promise))

        # Add non-resolving promises.
        promises += [Promise(lambda _ok, _err: None) for _ in range(0, 5)]

        p = Promise.race(promises)

        with pytest.raises(PendingError):
            p.result()
        _resolve_callback[0]('RESULT')

        # p is resolved after the first Promise resolves.
        assert p.result() == 'RESULT'

        # subsequent Promises resolutions should have no effect.
        _resolve_callback[1]('RESULT2')
        assert p.result() == 'RESULT'

    def test_method_race_with_failing_promises(self, task_queue):
        _reject_promise = []

        def _failing_async_promise(_ok, error):
            _reject_promise.append(error)

        promises = [Promise(_failing_async_promise) for _ in range(0, 15)]

        p = Promise.race(promises)

        with pytest.raises(PendingError):
            p.result()

        random.shuffle(_reject_promise)
        reject = _reject_promise.pop(0)
        reject(Err())
        assert isinstance(p.exception(), Err)

        # subsequent rejection are ignored
        for reject in _reject_promise:
            reject(ValueError())
        task_queue.run_until_idle()

        assert isinstance(p.exception(), Err)
