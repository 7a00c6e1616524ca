########################################################################
# File name: test_inspector.py
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
import unittest

import aiobosh.errors as errors
import aiobosh.inspector as inspector


SESSION_CREATED = (
    '<body xmlns="http://jabber.org/protocol/httpbind" sid="S1" wait="5" '
    'hold="1" requests="2"/>'
)

AUTH_SUCCESS = (
    '<body xmlns="http://jabber.org/protocol/httpbind">'
    '<success xmlns="urn:ietf:params:xml:ns:xmpp-sasl"/>'
    '</body>'
)

AUTH_FAILURE = (
    '<body xmlns="http://jabber.org/protocol/httpbind">'
    '<failure xmlns="urn:ietf:params:xml:ns:xmpp-sasl">'
    '<not-authorized/></failure>'
    '</body>'
)

STREAM_FEATURES = (
    '<body xmlns="http://jabber.org/protocol/httpbind" '
    'xmlns:stream="http://etherx.jabber.org/streams">'
    '<stream:features>'
    '<bind xmlns="urn:ietf:params:xml:ns:xmpp-bind"/>'
    '<session xmlns="urn:ietf:params:xml:ns:xmpp-session"/>'
    '</stream:features>'
    '</body>'
)

BOUND = (
    '<body xmlns="http://jabber.org/protocol/httpbind">'
    '<iq xmlns="jabber:client" type="result" id="bind_1">'
    '<bind xmlns="urn:ietf:params:xml:ns:xmpp-bind">'
    '<jid>user@domain/res</jid>'
    '</bind></iq></body>'
)

SESSION_STARTED = (
    '<body xmlns="http://jabber.org/protocol/httpbind">'
    '<iq xmlns="jabber:client" type="result" id="sess_1"/>'
    '</body>'
)

# a chat message which happens to mention all markers
INCIDENTAL = (
    '<body xmlns="http://jabber.org/protocol/httpbind">'
    '<message xmlns="jabber:client">'
    '<body>sid stream:features &lt;jid&gt;</body>'
    '</message></body>'
)


class Testextract_sid(unittest.TestCase):
    def test_sid_on_root(self):
        self.assertEqual(inspector.extract_sid(SESSION_CREATED), "S1")

    def test_sid_on_minimal_body(self):
        self.assertEqual(
            inspector.extract_sid(
                '<body sid="S1" xmlns="http://jabber.org/protocol/httpbind"/>'
            ),
            "S1"
        )

    def test_missing_sid(self):
        self.assertIsNone(inspector.extract_sid(AUTH_SUCCESS))

    def test_sid_on_child_is_ignored(self):
        self.assertIsNone(inspector.extract_sid(
            '<body><foo sid="S1"/></body>'
        ))

    def test_garbage(self):
        self.assertIsNone(inspector.extract_sid("this is not <xml"))

    def test_empty(self):
        self.assertIsNone(inspector.extract_sid(""))

    def test_html_error_page(self):
        self.assertIsNone(inspector.extract_sid(
            "<html><body><h1>502 Bad Gateway</h1></html>"
        ))

    def test_xml_declaration_with_encoding(self):
        self.assertEqual(
            inspector.extract_sid(
                '<?xml version="1.0" encoding="utf-8"?>'
                '<body sid="S2"/>'
            ),
            "S2"
        )

    def test_bytes(self):
        self.assertEqual(inspector.extract_sid(b'<body sid="S3"/>'), "S3")

    def test_entities_are_not_expanded_from_external_sources(self):
        self.assertIsNone(inspector.extract_sid(
            '<!DOCTYPE body [<!ENTITY x SYSTEM "file:///etc/passwd">]>'
            '<body>&x;</body>'
        ))


class TestResponseInspector(unittest.TestCase):
    def setUp(self):
        self.inspector = inspector.ResponseInspector()

    def tearDown(self):
        del self.inspector

    def test_not_strict_by_default(self):
        self.assertFalse(self.inspector.strict)

    def test_extract_sid(self):
        self.assertEqual(self.inspector.extract_sid(SESSION_CREATED), "S1")
        self.assertIsNone(self.inspector.extract_sid("garbage"))

    def test_auth_marker(self):
        self.assertTrue(self.inspector.indicates_auth_success(
            SESSION_CREATED
        ))
        self.assertTrue(self.inspector.indicates_auth_success("sid"))
        self.assertFalse(self.inspector.indicates_auth_success(AUTH_FAILURE))
        self.assertFalse(self.inspector.indicates_auth_success(""))

    def test_restart_marker(self):
        self.assertTrue(self.inspector.indicates_restart_success(
            STREAM_FEATURES
        ))
        self.assertTrue(self.inspector.indicates_restart_success(
            "garbage stream:features <"
        ))
        self.assertFalse(self.inspector.indicates_restart_success(
            AUTH_SUCCESS
        ))

    def test_bind_marker(self):
        self.assertTrue(self.inspector.indicates_bind_success(BOUND))
        self.assertFalse(self.inspector.indicates_bind_success(
            STREAM_FEATURES
        ))

    def test_session_marker(self):
        self.assertTrue(self.inspector.indicates_session_success(
            SESSION_STARTED
        ))
        self.assertTrue(self.inspector.indicates_session_success("body"))
        self.assertFalse(self.inspector.indicates_session_success(""))

    def test_markers_match_incidental_text(self):
        self.assertTrue(self.inspector.indicates_auth_success(INCIDENTAL))
        self.assertTrue(self.inspector.indicates_restart_success(INCIDENTAL))


class TestResponseInspectorStrict(unittest.TestCase):
    def setUp(self):
        self.inspector = inspector.ResponseInspector(strict=True)

    def tearDown(self):
        del self.inspector

    def test_auth_success_by_sasl_success(self):
        self.assertTrue(self.inspector.indicates_auth_success(AUTH_SUCCESS))

    def test_auth_success_by_sid(self):
        self.assertTrue(self.inspector.indicates_auth_success(
            SESSION_CREATED
        ))

    def test_auth_failure(self):
        self.assertFalse(self.inspector.indicates_auth_success(AUTH_FAILURE))

    def test_auth_failure_wins_over_sid(self):
        self.assertFalse(self.inspector.indicates_auth_success(
            '<body xmlns="http://jabber.org/protocol/httpbind" sid="S1">'
            '<failure xmlns="urn:ietf:params:xml:ns:xmpp-sasl"/>'
            '</body>'
        ))

    def test_restart(self):
        self.assertTrue(self.inspector.indicates_restart_success(
            STREAM_FEATURES
        ))
        self.assertFalse(self.inspector.indicates_restart_success(
            AUTH_SUCCESS
        ))

    def test_bind(self):
        self.assertTrue(self.inspector.indicates_bind_success(BOUND))
        self.assertFalse(self.inspector.indicates_bind_success(
            SESSION_STARTED
        ))

    def test_session(self):
        self.assertTrue(self.inspector.indicates_session_success(
            SESSION_STARTED
        ))

    def test_session_rejects_terminate(self):
        self.assertFalse(self.inspector.indicates_session_success(
            '<body xmlns="http://jabber.org/protocol/httpbind" '
            'type="terminate" condition="item-not-found"/>'
        ))

    def test_session_rejects_iq_error(self):
        self.assertFalse(self.inspector.indicates_session_success(
            '<body xmlns="http://jabber.org/protocol/httpbind">'
            '<iq xmlns="jabber:client" type="error" id="sess_1"/>'
            '</body>'
        ))

    def test_session_rejects_foreign_root(self):
        self.assertFalse(self.inspector.indicates_session_success(
            "<html><body/></html>"
        ))

    def test_incidental_text_does_not_match(self):
        self.assertFalse(self.inspector.indicates_auth_success(INCIDENTAL))
        self.assertFalse(self.inspector.indicates_restart_success(INCIDENTAL))
        self.assertFalse(self.inspector.indicates_bind_success(INCIDENTAL))

    def test_malformed_raises(self):
        checks = [
            self.inspector.indicates_auth_success,
            self.inspector.indicates_restart_success,
            self.inspector.indicates_bind_success,
            self.inspector.indicates_session_success,
        ]
        for check in checks:
            with self.assertRaises(errors.ProtocolParseFailure) as ctx:
                check("garbage stream:features sid <jid> body")
            self.assertEqual(ctx.exception.response,
                             "garbage stream:features sid <jid> body")

    def test_extract_sid_does_not_raise(self):
        self.assertIsNone(self.inspector.extract_sid("garbage"))
