# -*- coding: utf-8 -*-

import functools

from .deferred import Deferred
from .errors import RejectionError
from .promise import Promise


def reduce_coroutine(scheduler=None):
    """Decorator who converts a coroutine of promises into a single promise.

    The greatest interest is the ability to write a function in an
    synchronous-like style, using many asynchronous Promises.
    Whatever is the number of Promises or async calls used, the result will
    always be an unique Promise wrapping the whole process.

    The decorated function must be a generator. Each time it yields a
    Promise, the generator is resumed when the Promise is settled: the value
    is sent to the generator, or the rejection reason is raised at the
    `yield` expression.
    The resulting Promise is fulfilled with:
    - the first value yielded who is not a Promise. The generator is then
        closed.
    - the value returned by the generator, if any.
    - else, the last value received by the generator.
    An exception raised by the generator rejects the resulting Promise.

    Args:
        scheduler (optional): scheduler of the resulting promises.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            """
            Args:
                *args
                **kwargs
            Returns:
                Promise<*>
            """
            df = Deferred(scheduler=scheduler,
                          _name='COROUTINE %s' % func.__name__)

            try:
                # Create generator; Initialization phase
                gen = func(*args, **kwargs)
            except Exception as error:
                df.reject(error)
                return df.promise

            def _call_next_or_set_result(value):
                if isinstance(value, Promise):
                    value.then(iter_next, iter_error)
                else:
                    gen.close()
                    df.resolve(value)

            def _set_final_result(stop, last_value):
                if stop.value is not None:
                    df.resolve(stop.value)
                else:
                    df.resolve(last_value)

            def iter_next(received_value):
                try:
                    next_value = gen.send(received_value)
                except StopIteration as stop:
                    return _set_final_result(stop, received_value)
                except Exception as error:
                    return df.reject(error)
                _call_next_or_set_result(next_value)

            def iter_error(reason):
                if isinstance(reason, BaseException):
                    raised_error = reason
                else:
                    raised_error = RejectionError(reason)
                try:
                    next_value = gen.throw(raised_error)
                except StopIteration as stop:
                    if stop.value is not None:
                        return df.resolve(stop.value)
                    return df.reject(reason)
                except Exception as error:
                    if error is raised_error:
                        return df.reject(reason)
                    return df.reject(error)
                _call_next_or_set_result(next_value)

            # Start and resolve loop.
            try:
                first_value = next(gen)
            except StopIteration as stop:
                df.resolve(stop.value)
                return df.promise
            except Exception as error:
                df.reject(error)
                return df.promise
            _call_next_or_set_result(first_value)

            return df.promise

        return wrapper
    return decorator
