# -*- coding: utf-8 -*-

"""States of a Promise.

A state is one of:
- ``PENDING``, the unique pending state. It carries nothing.
- ``Fulfilled(value)``, holding the value of the promise.
- ``Rejected(reason)``, holding the reason of the failure.

The settled states are immutable tuples: a payload exists only once the
promise is settled, and it can't be replaced.
"""

from collections import namedtuple

PENDING_STATUS = 'pending'
FULFILLED_STATUS = 'fulfilled'
REJECTED_STATUS = 'rejected'


class _Pending(object):
    __slots__ = ()

    status = PENDING_STATUS
    short = 'P'

    def __repr__(self):
        return 'PENDING'


PENDING = _Pending()


class _Settled(object):
    __slots__ = ()

    # Fulfilled(x) and Rejected(x) are different states.
    def __eq__(self, other):
        return type(self) is type(other) and tuple.__eq__(self, other)

    def __ne__(self, other):
        return not self == other

    __hash__ = tuple.__hash__


class Fulfilled(_Settled, namedtuple('Fulfilled', ['value'])):
    __slots__ = ()

    status = FULFILLED_STATUS
    short = 'F'

    @property
    def payload(self):
        return self.value


class Rejected(_Settled, namedtuple('Rejected', ['reason'])):
    __slots__ = ()

    status = REJECTED_STATUS
    short = 'R'

    @property
    def payload(self):
        return self.reason
