########################################################################
# File name: structs.py
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
:mod:`~aiobosh.structs` --- Simple data holders for the handshake
#################################################################

This module contains the small value types the handshake is built from.

.. autoclass:: JID

.. autoclass:: RIDSequence

.. autoclass:: Session

.. data:: RID_RANGE

   Upper bound (exclusive) for the randomly chosen first request ID.

"""
import collections
import random


RID_RANGE = 100000


class JID(collections.namedtuple("JID", ["bare", "domain", "resource"])):
    """
    Represent the JID a handshake is performed for.

    :param bare: The ``local@domain`` part of the JID.
    :type bare: :class:`str`
    :param domain: The domain the session is initiated with.
    :type domain: :class:`str`
    :param resource: The resource requested by the user, or :data:`None` to
        let the client pick one during resource binding.
    :type resource: :class:`str` or :data:`None`

    No validation beyond locating the separators is done. In particular, if
    the bare JID lacks an ``@``, :attr:`domain` is the whole bare JID.

    .. automethod:: fromstr

    .. autoattribute:: localpart

    :class:`JID` objects are immutable.
    """

    __slots__ = []

    @classmethod
    def fromstr(cls, s):
        """
        Split the string `s` into bare JID and resource.

        The string is split at the first ``/``; everything after it is kept as
        resource; an empty resource counts as no resource. The domain is the
        part of the bare JID after its last ``@``.
        """
        bare, _, resource = s.partition("/")
        return cls(
            bare,
            bare.rpartition("@")[2],
            resource or None,
        )

    @property
    def localpart(self):
        """
        The part in front of the first ``@`` of the bare JID, stripped of
        surrounding whitespace.
        """
        return self.bare.split("@", 1)[0].strip()

    def __str__(self):
        if self.resource is not None:
            return "{}/{}".format(self.bare, self.resource)
        return self.bare


class RIDSequence:
    """
    Issue BOSH request IDs.

    :param initial: The value to return from the first call to :meth:`next`;
        if omitted, a random value from ``[0, RID_RANGE)`` is drawn on the
        first call.
    :type initial: :class:`int` or :data:`None`

    The connection manager checks that the request IDs it sees form a strictly
    increasing sequence without gaps. :meth:`next` must thus be called exactly
    once per outgoing request.

    .. automethod:: next

    .. autoattribute:: current
    """

    def __init__(self, initial=None):
        super().__init__()
        self._initial = initial
        self._current = None

    @property
    def current(self):
        """
        The last request ID issued by :meth:`next`, or :data:`None` if no ID
        has been issued yet.
        """
        return self._current

    def next(self):
        """
        Return the next request ID.
        """
        if self._current is None:
            if self._initial is None:
                self._current = random.randrange(RID_RANGE)
            else:
                self._current = self._initial
        else:
            self._current += 1
        return self._current


class Session:
    """
    State of a single handshake attempt.

    :param jid: The JID the handshake is performed for.
    :type jid: :class:`JID`
    :param rids: The request ID source; a fresh :class:`RIDSequence` is used if
        omitted.

    .. attribute:: jid

    .. attribute:: sid

       The session ID assigned by the connection manager, or :data:`None`
       while no response carried one.

    .. attribute:: established

       Whether all handshake steps succeeded.

    .. autoattribute:: rid

    .. automethod:: next_rid

    .. automethod:: update_sid

    A :class:`Session` belongs to exactly one handshake attempt. It must not be
    reused after a failure.
    """

    def __init__(self, jid, rids=None):
        super().__init__()
        self.jid = jid
        self.sid = None
        self.established = False
        self._rids = rids if rids is not None else RIDSequence()

    @property
    def rid(self):
        """
        The last request ID used, or :data:`None` before the first request.
        """
        return self._rids.current

    def next_rid(self):
        """
        Advance the request ID and return the new value.
        """
        return self._rids.next()

    def update_sid(self, sid):
        """
        Overwrite :attr:`sid` with `sid`, unless `sid` is :data:`None`.

        :return: Whether :attr:`sid` was changed.
        """
        if sid is None or sid == self.sid:
            return False
        self.sid = sid
        return True

    def __repr__(self):
        return "<{}.{} jid={!r} sid={!r} rid={!r} established={}>".format(
            type(self).__module__,
            type(self).__qualname__,
            self.jid.bare,
            self.sid,
            self.rid,
            self.established,
        )
