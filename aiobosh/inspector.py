########################################################################
# File name: inspector.py
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
:mod:`~aiobosh.inspector` --- Evaluating connection manager responses
#####################################################################

.. autofunction:: parse_response

.. autofunction:: extract_sid

.. autoclass:: ResponseInspector

"""
import logging

from . import errors
from .utils import etree, namespaces


logger = logging.getLogger(__name__)


def _make_parser():
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
    )


def parse_response(response_text):
    """
    Parse `response_text` and return the root element.

    :raises lxml.etree.XMLSyntaxError: if the text is not well-formed
    :raises ValueError: if the text cannot be handed to the parser at all
    """
    if isinstance(response_text, str):
        response_text = response_text.encode("utf-8")
    return etree.fromstring(response_text, parser=_make_parser())


def extract_sid(response_text):
    """
    Return the ``sid`` attribute of the root element of `response_text`.

    Returns :data:`None` if the attribute is absent or the text cannot be
    parsed; parse errors are never propagated.
    """
    try:
        root = parse_response(response_text)
    except (etree.XMLSyntaxError, ValueError) as exc:
        logger.debug("cannot extract sid from response: %s", exc)
        return None
    return root.get("sid")


class ResponseInspector:
    """
    Decide whether the response to a handshake step indicates success.

    :param strict: Inspect the parsed document instead of searching the raw
        text for marker substrings.
    :type strict: :class:`bool`

    By default, the checks are substring searches on the raw response:

    =========== ==================================
    Step        Marker
    =========== ==================================
    auth        ``sid``
    restart     ``stream:features``
    bind        ``<jid>``
    session     ``body``
    =========== ==================================

    With `strict` enabled, each response is parsed and checked structurally
    instead. A response which is not well-formed then raises
    :class:`~.errors.ProtocolParseFailure`.

    .. automethod:: extract_sid

    .. automethod:: indicates_auth_success

    .. automethod:: indicates_restart_success

    .. automethod:: indicates_bind_success

    .. automethod:: indicates_session_success
    """

    AUTH_MARKER = "sid"
    RESTART_MARKER = "stream:features"
    BIND_MARKER = "<jid>"
    SESSION_MARKER = "body"

    def __init__(self, strict=False):
        super().__init__()
        self.strict = strict

    def extract_sid(self, response_text):
        return extract_sid(response_text)

    def _parse_strict(self, response_text):
        try:
            return parse_response(response_text)
        except (etree.XMLSyntaxError, ValueError) as exc:
            raise errors.ProtocolParseFailure(
                response_text,
                reason=str(exc),
            ) from exc

    def indicates_auth_success(self, response_text):
        """
        Check whether the SASL authentication response indicates success.
        """
        if not self.strict:
            return self.AUTH_MARKER in response_text

        root = self._parse_strict(response_text)
        if root.find(namespaces.prefixed("sasl", "failure")) is not None:
            return False
        return (root.get("sid") is not None or
                root.find(namespaces.prefixed("sasl", "success")) is not None)

    def indicates_restart_success(self, response_text):
        """
        Check whether the stream restart response carries stream features.
        """
        if not self.strict:
            return self.RESTART_MARKER in response_text

        root = self._parse_strict(response_text)
        return root.find(
            namespaces.prefixed("xmlstream", "features")
        ) is not None

    def indicates_bind_success(self, response_text):
        """
        Check whether the resource binding response carries the bound JID.
        """
        if not self.strict:
            return self.BIND_MARKER in response_text

        root = self._parse_strict(response_text)
        return next(
            root.iter(namespaces.prefixed("bind", "jid")),
            None
        ) is not None

    def indicates_session_success(self, response_text):
        """
        Check whether the session establishment response is a valid envelope.
        """
        if not self.strict:
            return self.SESSION_MARKER in response_text

        root = self._parse_strict(response_text)
        if root.tag != namespaces.prefixed("bosh", "body"):
            return False
        if root.get("type") == "terminate":
            return False
        for iq in root.iterchildren(namespaces.prefixed("client", "iq")):
            if iq.get("type") == "error":
                return False
        return True
