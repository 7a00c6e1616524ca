########################################################################
# File name: handshake.py
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
:mod:`~aiobosh.handshake` --- Establishing a BOSH session
#########################################################

The handshake creates a BOSH session at a connection manager, authenticates
with SASL ``PLAIN``, restarts the stream, binds a resource and starts the
XMPP session. Afterwards, the session ID and the next request ID can be
handed to another client (for example a browser) which continues to use the
session.

Example use::

    jid, sid, rid = await aiobosh.initialize_session(
        "romeo@montague.lit/balcony",
        "secret",
        "https://montague.lit/http-bind",
    )

.. autoclass:: HandshakeDriver

.. autofunction:: initialize_session

"""
import asyncio
import logging
import random

from . import body, errors, inspector, sasl, structs, transport
from .utils import namespaces
from .statemachine import HandshakeState, OrderedStateMachine


logger = logging.getLogger(__name__)


RESOURCE_RANGE = 10000


def make_resource():
    """
    Generate a resource of the form ``bosh_<n>``.
    """
    return "bosh_{}".format(random.randrange(RESOURCE_RANGE))


class HandshakeDriver:
    """
    Drive the BOSH handshake for one JID.

    :param jid: The JID to authenticate as, optionally with resource.
    :type jid: :class:`str`
    :param password: The password for SASL ``PLAIN``.
    :type password: :class:`str`
    :param service_url: URL of the BOSH connection manager.
    :type service_url: :class:`str`
    :param timeout: Maximum time in seconds to wait for each response.
    :type timeout: :class:`float`
    :param wait: BOSH ``wait`` attribute sent on session creation.
    :type wait: :class:`int`
    :param hold: BOSH ``hold`` attribute sent on session creation.
    :type hold: :class:`int`
    :param transport: Object with a coroutine method ``post(url, body,
        headers)``; a :class:`~.transport.HTTPTransport` is used if omitted.
    :param strict: Passed to :class:`~.inspector.ResponseInspector`.
    :type strict: :class:`bool`
    :param base_logger: Logger to derive the driver logger from.
    :type base_logger: :class:`logging.Logger`

    Each driver performs at most one handshake; to retry after a failure,
    construct a new driver.

    .. automethod:: connect

    .. autoattribute:: state

    .. autoattribute:: established

    .. autoattribute:: resource

    .. automethod:: wait_for_state

    .. attribute:: session

       The :class:`~.structs.Session` of the handshake.
    """

    def __init__(self, jid, password, service_url, *,
                 timeout=10, wait=5, hold=1,
                 transport=None,
                 strict=False,
                 base_logger=None):
        super().__init__()
        self.jid = structs.JID.fromstr(jid)
        self.service_url = service_url
        self.timeout = timeout
        self.wait = wait
        self.hold = hold
        self.session = structs.Session(self.jid)
        self.inspector = inspector.ResponseInspector(strict=strict)
        self.envelopes = body.EnvelopeBuilder()
        self._password = password
        self._transport = transport
        self._machine = OrderedStateMachine(HandshakeState.INIT)
        self._started = False
        if base_logger is not None:
            self._logger = base_logger.getChild(type(self).__name__)
        else:
            self._logger = logger

    @property
    def state(self):
        """
        The current :class:`~.statemachine.HandshakeState`.
        """
        return self._machine.state

    @property
    def established(self):
        """
        Whether the handshake reached
        :attr:`~.statemachine.HandshakeState.ESTABLISHED`.
        """
        return self.session.established

    @property
    def resource(self):
        """
        The resource requested by the user, or :data:`None`.
        """
        return self.jid.resource

    async def wait_for_state(self, state):
        """
        Wait until the handshake reached at least `state`.

        :attr:`~.statemachine.HandshakeState.FAILED` orders after all other
        states, so this also returns once the handshake failed.
        """
        await self._machine.wait_for_at_least(state)

    def _set_state(self, state):
        self._logger.debug("%s: %s -> %s",
                           self.jid.bare, self._machine.state, state)
        if state == HandshakeState.ESTABLISHED:
            self.session.established = True
        self._machine.state = state

    async def _post(self, transport_, text, *, sensitive=False):
        if sensitive:
            self._logger.debug("SEND (%d characters, redacted)", len(text))
        else:
            self._logger.debug("SEND %s", text)

        try:
            response = await asyncio.wait_for(
                transport_.post(self.service_url, text, transport.HEADERS),
                timeout=self.timeout,
            )
        except errors.BOSHError:
            raise
        except asyncio.TimeoutError as exc:
            raise errors.TimeoutFailure(
                "no response from {} within {}s".format(
                    self.service_url, self.timeout),
                timeout=self.timeout,
            ) from exc
        except OSError as exc:
            raise errors.ConnectionFailure(
                "could not connect to {}: {}".format(self.jid.domain, exc)
            ) from exc

        self._logger.debug("RECV %s", response)

        if self.session.update_sid(self.inspector.extract_sid(response)):
            self._logger.debug("session id is now %r", self.session.sid)

        return response

    async def _exchange(self, transport_, payload=None, attrs=None):
        merged = {"sid": self.session.sid}
        if attrs:
            merged.update(attrs)
        text = self.envelopes.build(
            self.session.next_rid(),
            merged,
            payload,
        )
        kind = payload.KIND if payload is not None else body.PayloadKind.NONE
        return await self._post(
            transport_,
            text,
            sensitive=kind is body.PayloadKind.AUTH,
        )

    async def _create_session(self, transport_):
        text = self.envelopes.build(
            self.session.next_rid(),
            {
                "wait": self.wait,
                "to": self.jid.domain,
                "hold": self.hold,
                "xmpp:version": "1.0",
            },
        )
        await self._post(transport_, text)
        return True

    async def _authenticate(self, transport_):
        async def exchange(payload):
            return await self._exchange(transport_, payload)

        return await sasl.authenticate_plain(
            sasl.SASLBOSHInterface(exchange, self.inspector),
            self.jid.localpart,
            self._password,
        )

    async def _restart(self, transport_):
        response = await self._exchange(
            transport_,
            body.Restart(),
            {"xmlns:xmpp": namespaces.xbosh},
        )
        return self.inspector.indicates_restart_success(response)

    async def _bind(self, transport_):
        resource = self.jid.resource
        if resource is None:
            resource = make_resource()
        response = await self._exchange(transport_, body.Bind(resource))
        return self.inspector.indicates_bind_success(response)

    async def _start_session(self, transport_):
        response = await self._exchange(transport_, body.Session())
        return self.inspector.indicates_session_success(response)

    async def _run(self, transport_):
        steps = [
            (self._create_session, HandshakeState.AWAITING_AUTH),
            (self._authenticate, HandshakeState.AWAITING_RESTART),
            (self._restart, HandshakeState.AWAITING_BIND),
            (self._bind, HandshakeState.AWAITING_SESSION),
            (self._start_session, HandshakeState.ESTABLISHED),
        ]

        failed_in = None
        try:
            for step, next_state in steps:
                if not await step(transport_):
                    failed_in = self.state
                    self._logger.info(
                        "handshake for %s failed in state %s",
                        self.jid.bare, failed_in,
                    )
                    self._set_state(HandshakeState.FAILED)
                    break
                self._set_state(next_state)
        except BaseException:
            self._set_state(HandshakeState.FAILED)
            raise

        if self.state != HandshakeState.ESTABLISHED:
            raise errors.AuthenticationFailure(
                self.jid.bare,
                text="failed in {}".format(failed_in.name.lower()),
            )

        # reserved for the first request of the caller
        self.session.next_rid()
        self._logger.debug("established %r", self.session)
        return self.jid.bare, self.session.sid, self.session.rid

    async def connect(self):
        """
        Perform the handshake.

        :raises RuntimeError: if the driver has been used already
        :raises aiobosh.errors.AuthenticationFailure: if any step fails
        :raises aiobosh.errors.TimeoutFailure: if a response does not arrive
            in time
        :raises aiobosh.errors.ConnectionFailure: if the connection manager
            cannot be reached
        :raises aiobosh.errors.ProtocolParseFailure: if `strict` is enabled and
            a response is not well-formed
        :return: The bare JID, the session ID and the request ID to use for the
            next request, as triple.
        """
        if self._started:
            raise RuntimeError(
                "handshake has already been attempted; create a new driver"
            )

        self._started = True

        if self._transport is not None:
            return await self._run(self._transport)

        async with transport.HTTPTransport() as transport_:
            return await self._run(transport_)


async def initialize_session(jid, password, service_url, **kwargs):
    """
    Shorthand to create a :class:`HandshakeDriver` and :meth:`connect
    <HandshakeDriver.connect>` it.

    The arguments are passed to :class:`HandshakeDriver`.
    """
    return await HandshakeDriver(jid, password, service_url,
                                 **kwargs).connect()
