########################################################################
# File name: sasl.py
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
:mod:`~aiobosh.sasl` -- SASL over a BOSH handshake
##################################################

This module provides an adaptor which lets :mod:`aiosasl` mechanisms run
over the single authentication request of the BOSH handshake.

.. autoclass:: SASLBOSHInterface

.. autofunction:: authenticate_plain

"""

import logging

import aiosasl

from . import body

logger = logging.getLogger(__name__)


class SASLBOSHInterface(aiosasl.SASLInterface):
    """
    :class:`aiosasl.SASLInterface` implementation which sends the ``<auth/>``
    element inside a BOSH envelope.

    :param exchange: Coroutine function which sends a :class:`.body.Payload`
        and returns the raw response text.
    :param inspector: The :class:`~.inspector.ResponseInspector` which judges
        the response.

    The handshake does not support challenge-response mechanisms: the response
    to :meth:`initiate` is either a success or a failure.
    """

    def __init__(self, exchange, inspector):
        super().__init__()
        self.exchange = exchange
        self.inspector = inspector

    async def initiate(self, mechanism, payload=None):
        response = await self.exchange(
            body.SASLAuth(mechanism, payload),
        )

        if not self.inspector.indicates_auth_success(response):
            raise aiosasl.AuthenticationFailure(
                "not-authorized",
                text="connection manager rejected {} authentication".format(
                    mechanism
                ),
            )

        return aiosasl.SASLState.SUCCESS, None

    async def respond(self, payload):
        raise aiosasl.SASLFailure(
            "aborted",
            text="challenge-response is not supported during BOSH handshake"
        )

    async def abort(self):
        raise aiosasl.SASLFailure(
            "aborted",
            text="authentication aborted"
        )


async def authenticate_plain(interface, username, password):
    """
    Run the SASL ``PLAIN`` mechanism over `interface`.

    The initial response is ``"\\0" + username + "\\0" + password``.

    :return: :data:`True` on success, :data:`False` if the peer rejected the
        credentials.
    """

    async def credential_provider():
        return username, password

    sm = aiosasl.SASLStateMachine(interface)
    mechanism = aiosasl.PLAIN(credential_provider)
    try:
        await mechanism.authenticate(sm, "PLAIN")
    except aiosasl.SASLFailure as exc:
        logger.info("PLAIN authentication failed: %s", exc)
        return False
    return True
