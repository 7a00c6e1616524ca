########################################################################
# File name: body.py
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
:mod:`~aiobosh.body` --- Building BOSH request envelopes
########################################################

Every request sent to the connection manager is a single ``<body/>`` element
in the :xep:`124` namespace. The handshake only ever needs five shapes of
request; each shape is represented by one payload class.

.. autoclass:: EnvelopeBuilder

Payloads
========

.. autoclass:: PayloadKind

.. autoclass:: Payload

.. autoclass:: NoPayload

.. autoclass:: SASLAuth

.. autoclass:: Restart

.. autoclass:: Bind

.. autoclass:: Session

"""
import base64
import enum
import random

from .utils import etree, namespaces, qualify_attribute


IQ_ID_RANGE = 100000


class PayloadKind(enum.Enum):
    """
    Tag of the payload variants.
    """

    NONE = "none"
    AUTH = "auth"
    RESTART = "restart"
    BIND = "bind"
    SESSION = "session"


class Payload:
    """
    Base class for the payload variants.

    .. attribute:: KIND

       The :class:`PayloadKind` member identifying the variant.

    .. automethod:: attributes

    .. automethod:: append_to
    """

    KIND = None

    def attributes(self):
        """
        Return a mapping of extra attributes for the envelope.

        Attributes passed to :meth:`EnvelopeBuilder.build` explicitly take
        precedence.
        """
        return {}

    def append_to(self, body):
        """
        Append the child elements of this payload to the `body` element.
        """


class NoPayload(Payload):
    """
    An envelope without children, as used for session creation.
    """

    KIND = PayloadKind.NONE


class SASLAuth(Payload):
    """
    An ``<auth/>`` element initiating SASL.

    :param mechanism: SASL mechanism name.
    :param payload: Initial response of the mechanism.
    :type payload: :class:`bytes` or :data:`None`
    """

    KIND = PayloadKind.AUTH

    def __init__(self, mechanism, payload=None):
        super().__init__()
        self.mechanism = mechanism
        self.payload = payload

    def encoded_payload(self):
        if self.payload is None:
            return None
        encoded = base64.b64encode(self.payload).decode("ascii")
        return "".join(encoded.split())

    def append_to(self, body):
        auth = etree.SubElement(
            body,
            namespaces.prefixed("sasl", "auth"),
            nsmap={None: namespaces.sasl},
        )
        auth.set("mechanism", self.mechanism)
        text = self.encoded_payload()
        if text is not None:
            auth.text = text or "="


class Restart(Payload):
    """
    The XBOSH stream restart request, which has no children but sets
    ``xmpp:restart``.
    """

    KIND = PayloadKind.RESTART

    def attributes(self):
        return {"xmpp:restart": True}


def _make_iq(body, id_):
    iq = etree.SubElement(
        body,
        namespaces.prefixed("client", "iq"),
        nsmap={None: namespaces.client},
    )
    iq.set("id", id_)
    iq.set("type", "set")
    return iq


class Bind(Payload):
    """
    A resource binding ``<iq/>``.

    :param resource: The resource to request.
    :param id_: The IQ id; a random one is generated if omitted.
    """

    KIND = PayloadKind.BIND

    def __init__(self, resource, id_=None):
        super().__init__()
        self.resource = resource
        if id_ is None:
            id_ = "bind_{}".format(random.randrange(IQ_ID_RANGE))
        self.id_ = id_

    def append_to(self, body):
        bind = etree.SubElement(
            _make_iq(body, self.id_),
            namespaces.prefixed("bind", "bind"),
            nsmap={None: namespaces.bind},
        )
        resource = etree.SubElement(
            bind,
            namespaces.prefixed("bind", "resource"),
        )
        resource.text = self.resource


class Session(Payload):
    """
    A session establishment ``<iq/>``.

    :param id_: The IQ id; a random one is generated if omitted.
    """

    KIND = PayloadKind.SESSION

    def __init__(self, id_=None):
        super().__init__()
        if id_ is None:
            id_ = "sess_{}".format(random.randrange(IQ_ID_RANGE))
        self.id_ = id_

    def append_to(self, body):
        etree.SubElement(
            _make_iq(body, self.id_),
            namespaces.prefixed("session", "session"),
            nsmap={None: namespaces.session},
        )


def format_value(value):
    """
    Render an attribute value: booleans become ``"true"`` or ``"false"``,
    anything else is converted with :func:`str`.
    """
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


class EnvelopeBuilder:
    """
    Render ``<body/>`` envelopes.

    The envelope always carries the request ID, the BOSH default namespace,
    ``xmpp:version="1.0"`` and the XBOSH namespace declaration. Additional
    attributes are merged on top of these and win on collision.

    Attribute keys may be prefixed: ``xmpp:`` maps to the XBOSH namespace,
    ``xml:`` to the XML namespace and ``xmlns:prefix`` declares a namespace
    prefix on the envelope. An attribute with value :data:`None` is omitted.

    .. automethod:: build

    .. automethod:: build_element
    """

    BASE_NSMAP = {
        None: namespaces.bosh,
        "xmpp": namespaces.xbosh,
    }

    def base_attributes(self, rid):
        return {
            "rid": rid,
            "xmpp:version": "1.0",
        }

    def build_element(self, rid, attrs=None, payload=None):
        """
        Build the envelope as :mod:`lxml` element.

        :param rid: The request ID of the envelope.
        :param attrs: Attributes to set on the envelope.
        :type attrs: mapping or :data:`None`
        :param payload: The payload variant to embed.
        :type payload: :class:`Payload` or :data:`None`
        :return: The ``body`` element.
        """
        if payload is None:
            payload = NoPayload()

        merged = self.base_attributes(rid)
        merged.update(payload.attributes())
        if attrs:
            merged.update(attrs)

        nsmap = dict(self.BASE_NSMAP)
        plain = {}
        for key, value in merged.items():
            if key == "xmlns":
                if value is not None:
                    nsmap[None] = str(value)
            elif key.startswith("xmlns:"):
                if value is not None:
                    nsmap[key[len("xmlns:"):]] = str(value)
            else:
                plain[key] = value

        body = etree.Element(
            "{{{}}}body".format(nsmap[None]),
            nsmap=nsmap,
        )
        for key, value in plain.items():
            if value is None:
                continue
            body.set(qualify_attribute(key, nsmap), format_value(value))

        payload.append_to(body)
        return body

    def build(self, rid, attrs=None, payload=None):
        """
        Build the envelope and serialise it.

        Takes the same arguments as :meth:`build_element`.

        :rtype: :class:`str`
        """
        return etree.tostring(
            self.build_element(rid, attrs, payload),
            encoding="unicode",
        )
