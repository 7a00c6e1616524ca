########################################################################
# File name: statemachine.py
# This file is part of: aiobosh
#
# LICENSE
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program.  If not, see
# <http://www.gnu.org/licenses/>.
#
########################################################################
"""
:mod:`~aiobosh.statemachine` -- Handshake progress tracking
###########################################################

.. autoclass:: HandshakeState

.. autoclass:: OrderedStateMachine

"""
import asyncio
import enum
import functools


@functools.total_ordering
class HandshakeState(enum.Enum):
    """
    The states of a BOSH handshake, in the order they are passed.

    .. attribute:: INIT

       No request has been sent yet.

    .. attribute:: AWAITING_AUTH

       The session has been created, SASL authentication is next.

    .. attribute:: AWAITING_RESTART

    .. attribute:: AWAITING_BIND

    .. attribute:: AWAITING_SESSION

    .. attribute:: ESTABLISHED

       All steps succeeded. Terminal.

    .. attribute:: FAILED

       A step failed or the transport raised. Terminal.
    """

    INIT = 0
    AWAITING_AUTH = 1
    AWAITING_RESTART = 2
    AWAITING_BIND = 3
    AWAITING_SESSION = 4
    ESTABLISHED = 5
    FAILED = 6

    def __lt__(self, other):
        if not isinstance(other, HandshakeState):
            return NotImplemented
        return self.value < other.value


class OrderedStateMachine:
    """
    Store a state which can only move forwards and allow coroutines to wait
    until a state has been reached.

    States used by :class:`OrderedStateMachine` must be ordered; a sanity check
    is performed by checking if the `initial_state` is less than itself. If
    that check fails, :class:`TypeError` is raised.

    .. autoattribute:: state

    .. automethod:: wait_for_at_least
    """

    def __init__(self, initial_state):
        try:
            initial_state < initial_state
        except (TypeError, AttributeError):
            raise TypeError("states must be ordered")

        self._state = initial_state
        self._least_waiters = []

    @property
    def state(self):
        """
        The current state. Writing to this attribute advances the state
        machine and wakes up waiters.

        Attempting to change the state to a state which is *less* than the
        current state raises :class:`ValueError`.
        """
        return self._state

    @state.setter
    def state(self, new_state):
        if new_state < self._state:
            raise ValueError("cannot rewind OrderedStateMachine "
                             "({} < {})".format(
                                 new_state, self._state))
        self._state = new_state

        new_waiters = []
        for least_state, fut in self._least_waiters:
            if fut.done():
                continue
            if not (new_state < least_state):
                fut.set_result(None)
                continue
            new_waiters.append((least_state, fut))
        self._least_waiters[:] = new_waiters

    async def wait_for_at_least(self, new_state):
        """
        Wait for a state to be entered which is greater than or equal to
        `new_state` and return.
        """
        if not (self._state < new_state):
            return

        fut = asyncio.get_running_loop().create_future()
        self._least_waiters.append((new_state, fut))
        await fut
