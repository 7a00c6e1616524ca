########################################################################
# File name: utils.py
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
:mod:`~aiobosh.utils` --- Internal utils
========================================

Miscellaneous utilities used throughout the aiobosh codebase.

.. data:: namespaces

   Collects all the namespaces used during the BOSH handshake. Each namespace
   is given a shortname and its value is the namespace string.

.. autoclass:: Namespaces

.. autofunction:: qualify_attribute

"""

import lxml.etree as etree

__all__ = [
    "etree",
    "namespaces",
]


class Namespaces:
    """
    Manage short-hands for XML namespaces.

    Instances of this class may be used to assign mnemonic short-hands
    to XML namespaces, for example:

    .. code-block:: python

        namespaces = Namespaces()
        namespaces.foo = "urn:example:foo"

    Only one short-hand may be bound to each namespace and no short-hand may
    be redefined to point to a different namespace; both raise
    :class:`ValueError`. Deleting a short-hand raises :class:`AttributeError`.

    The defined short-hands MUST NOT start with an underscore.

    .. automethod:: prefixed
    """

    def __init__(self):
        self._all_namespaces = {}

    def __setattr__(self, attr, value):
        if not attr.startswith("_"):
            try:
                existing_attr = self._all_namespaces[value]
                if attr != existing_attr:
                    raise ValueError(
                        "namespace {} already defined as {}".format(
                            value,
                            existing_attr,
                        )
                    )
            except KeyError:
                try:
                    if getattr(self, attr) != value:
                        raise ValueError("inconsistent namespace redefinition")
                except AttributeError:
                    pass
            self._all_namespaces[value] = attr
        super().__setattr__(attr, value)

    def __delattr__(self, attr):
        if not attr.startswith("_"):
            raise AttributeError("deleting short-hands is prohibited")
        super().__delattr__(attr)

    def prefixed(self, namespace, localname):
        """
        Return the Clark notation ``{namespace}localname`` for the namespace
        registered under the short-hand `namespace`.

        :raises AttributeError: if no such short-hand exists
        """
        return "{{{}}}{}".format(getattr(self, namespace), localname)


namespaces = Namespaces()
namespaces.bosh = "http://jabber.org/protocol/httpbind"
namespaces.xbosh = "urn:xmpp:xbosh"
namespaces.xmlstream = "http://etherx.jabber.org/streams"
namespaces.client = "jabber:client"
namespaces.sasl = "urn:ietf:params:xml:ns:xmpp-sasl"
namespaces.bind = "urn:ietf:params:xml:ns:xmpp-bind"
namespaces.session = "urn:ietf:params:xml:ns:xmpp-session"
namespaces.xml = "http://www.w3.org/XML/1998/namespace"


#: Attribute prefixes which are bound to a fixed namespace on the envelope.
ATTRIBUTE_PREFIXES = {
    "xmpp": namespaces.xbosh,
    "xml": namespaces.xml,
}


def qualify_attribute(key, nsmap=None):
    """
    Convert a prefixed attribute `key` such as ``xmpp:version`` into the
    Clark notation used by :mod:`lxml`.

    Prefixes are resolved against `nsmap` first and then against the fixed
    :data:`ATTRIBUTE_PREFIXES`. Unprefixed keys are returned unchanged.

    :raises ValueError: if the prefix is unknown
    """
    prefix, sep, localname = key.partition(":")
    if not sep:
        return key
    if nsmap and prefix in nsmap:
        return "{{{}}}{}".format(nsmap[prefix], localname)
    try:
        return "{{{}}}{}".format(ATTRIBUTE_PREFIXES[prefix], localname)
    except KeyError:
        raise ValueError(
            "unknown attribute prefix: {!r}".format(prefix)
        ) from None
