########################################################################
# File name: errors.py
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
:mod:`~aiobosh.errors` --- Exception classes
############################################

All failures raised by :meth:`aiobosh.handshake.HandshakeDriver.connect` are
subclasses of :class:`BOSHError`. Each of them additionally derives from the
matching builtin exception, so callers which only care about, for example,
timeouts can catch :class:`TimeoutError`.

.. autoclass:: BOSHError

Transport failures
==================

.. autoclass:: TimeoutFailure

.. autoclass:: ConnectionFailure

Handshake failures
==================

.. autoclass:: AuthenticationFailure

.. autoclass:: ProtocolParseFailure

"""


class BOSHError(Exception):
    """
    Base class for all errors raised by :mod:`aiobosh`.
    """


class TimeoutFailure(BOSHError, TimeoutError):
    """
    The connection manager did not answer a handshake request within the
    configured timeout.

    .. attribute:: timeout

       The deadline in seconds which was exceeded, or :data:`None` if it is
       not known.
    """

    def __init__(self, message, timeout=None):
        super().__init__(message)
        self.timeout = timeout


class ConnectionFailure(BOSHError, ConnectionError):
    """
    The connection manager could not be reached or answered with a non-success
    HTTP status.

    .. attribute:: status

       The HTTP status code of the failed request, or :data:`None` if no
       response was received at all.
    """

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class AuthenticationFailure(BOSHError, PermissionError):
    """
    The handshake completed without establishing a session.

    .. attribute:: jid

       The bare JID (as :class:`str`) which could not authenticate.
    """

    def __init__(self, jid, text=None):
        msg = "could not authenticate {}".format(jid)
        if text:
            msg += " ({})".format(text)
        super().__init__(msg)
        self.jid = jid
        self.text = text


class ProtocolParseFailure(BOSHError, ValueError):
    """
    A response which must be inspected structurally is not well-formed XML.

    .. attribute:: response

       The raw response text.
    """

    def __init__(self, response, reason=None):
        msg = "malformed response from connection manager"
        if reason:
            msg += ": {}".format(reason)
        super().__init__(msg)
        self.response = response
