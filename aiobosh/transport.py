########################################################################
# File name: transport.py
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
:mod:`~aiobosh.transport` --- HTTP transport for the handshake
##############################################################

The handshake only needs to POST a body and read back the response text. Any
object with a coroutine method ``post(url, body, headers)`` returning the
response text can be passed as transport to
:class:`~aiobosh.handshake.HandshakeDriver`; :class:`HTTPTransport` is the
default implementation, built on :mod:`aiohttp`.

.. autoclass:: HTTPTransport

.. data:: HEADERS

   The HTTP headers sent with every handshake request.

"""
import asyncio
import logging

import aiohttp

from . import errors


logger = logging.getLogger(__name__)


HEADERS = {
    "Content-Type": "text/xml; charset=utf-8",
    "Accept": "text/xml",
}


class HTTPTransport:
    """
    POST request bodies using an :class:`aiohttp.ClientSession`.

    :param session: The client session to use. If omitted, the transport
        creates its own session when it is entered as asynchronous context
        manager and closes it on exit.
    :type session: :class:`aiohttp.ClientSession` or :data:`None`

    :mod:`aiohttp` errors are translated into :mod:`aiobosh.errors`:
    read timeouts raise :class:`~.errors.TimeoutFailure`, all other client
    errors (including non-success HTTP statuses) raise
    :class:`~.errors.ConnectionFailure`.

    .. automethod:: post

    .. automethod:: close
    """

    def __init__(self, session=None):
        super().__init__()
        self._session = session
        self._owns_session = False

    async def __aenter__(self):
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.close()

    async def close(self):
        """
        Close the client session if it was created by this transport.
        """
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            self._owns_session = False

    async def post(self, url, body, headers=HEADERS):
        """
        POST `body` to `url` and return the decoded response text.

        Bytes which are not valid in the response encoding are replaced with
        U+FFFD instead of failing the request.
        """
        if self._session is None:
            raise RuntimeError(
                "HTTPTransport has no session; use it as async context manager"
            )

        try:
            async with self._session.post(
                    url,
                    data=body.encode("utf-8"),
                    headers=headers) as response:
                if response.status >= 300:
                    raise errors.ConnectionFailure(
                        "connection manager at {} answered with HTTP "
                        "{}".format(url, response.status),
                        status=response.status,
                    )
                return await response.text(errors="replace")
        except aiohttp.ServerTimeoutError as exc:
            raise errors.TimeoutFailure(
                "request to {} timed out".format(url)
            ) from exc
        except aiohttp.ClientError as exc:
            raise errors.ConnectionFailure(
                "could not connect to {}: {}".format(url, exc)
            ) from exc
        except asyncio.TimeoutError as exc:
            raise errors.TimeoutFailure(
                "request to {} timed out".format(url)
            ) from exc
