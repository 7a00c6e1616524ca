########################################################################
# File name: test_statemachine.py
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
import asyncio
import enum
import unittest

import aiobosh.statemachine as statemachine

from aiobosh.statemachine import HandshakeState
from aiobosh.testutils import run_coroutine


class TestHandshakeState(unittest.TestCase):
    def test_order(self):
        self.assertEqual(
            sorted(HandshakeState),
            [
                HandshakeState.INIT,
                HandshakeState.AWAITING_AUTH,
                HandshakeState.AWAITING_RESTART,
                HandshakeState.AWAITING_BIND,
                HandshakeState.AWAITING_SESSION,
                HandshakeState.ESTABLISHED,
                HandshakeState.FAILED,
            ]
        )

    def test_comparison(self):
        self.assertLess(HandshakeState.INIT, HandshakeState.AWAITING_AUTH)
        self.assertGreater(HandshakeState.FAILED, HandshakeState.ESTABLISHED)
        self.assertLessEqual(HandshakeState.INIT, HandshakeState.INIT)

    def test_comparison_with_other_types(self):
        with self.assertRaises(TypeError):
            HandshakeState.INIT < 1


class TestOrderedStateMachine(unittest.TestCase):
    def setUp(self):
        self.osm = statemachine.OrderedStateMachine(HandshakeState.INIT)

    def tearDown(self):
        del self.osm

    def test_init(self):
        self.assertEqual(HandshakeState.INIT, self.osm.state)

    def test_init_rejects_unordered_state_type(self):
        class OtherStates(enum.Enum):
            FOO = 1
            BAR = 2

        with self.assertRaisesRegex(TypeError,
                                    "states must be ordered"):
            statemachine.OrderedStateMachine(OtherStates.FOO)

    def test_forward(self):
        self.osm.state = HandshakeState.AWAITING_AUTH
        self.assertEqual(self.osm.state, HandshakeState.AWAITING_AUTH)
        self.osm.state = HandshakeState.FAILED
        self.assertEqual(self.osm.state, HandshakeState.FAILED)

    def test_rewind_is_rejected(self):
        self.osm.state = HandshakeState.AWAITING_BIND
        with self.assertRaisesRegex(ValueError,
                                    "cannot rewind OrderedStateMachine"):
            self.osm.state = HandshakeState.AWAITING_AUTH
        self.assertEqual(self.osm.state, HandshakeState.AWAITING_BIND)

    def test_wait_for_at_least(self):
        async def test():
            tasks = {
                state: asyncio.ensure_future(
                    self.osm.wait_for_at_least(state)
                )
                for state in HandshakeState
            }

            await asyncio.sleep(0)

            self.osm.state = HandshakeState.AWAITING_BIND

            await asyncio.sleep(0.01)

            for state, task in tasks.items():
                if state <= HandshakeState.AWAITING_BIND:
                    self.assertTrue(task.done(), state)
                    self.assertIsNone(task.result())
                else:
                    self.assertFalse(task.done(), state)
                    task.cancel()

        run_coroutine(test())

    def test_wait_for_at_least_can_be_cancelled(self):
        async def test():
            task = asyncio.ensure_future(
                self.osm.wait_for_at_least(HandshakeState.ESTABLISHED)
            )
            await asyncio.sleep(0)
            task.cancel()
            await asyncio.sleep(0)

            self.osm.state = HandshakeState.ESTABLISHED
            self.assertTrue(task.cancelled())

        run_coroutine(test())
