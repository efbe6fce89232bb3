# -*- coding: utf-8 -*-


def is_callable(value):
    """Check if an object can be used as a handler.

    `then()` treats any non-callable handler (None included) as missing.

    Returns:
        boolean: True if the value has a `__call__` attribute. False if not.
    """
    return hasattr(value, '__call__')


def get_name(value, default='???'):
    """Returns a printable name for a callable, used in Promise repr."""
    return getattr(value, '__name__', default)
