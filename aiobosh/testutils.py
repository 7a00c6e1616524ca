########################################################################
# File name: testutils.py
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
This module contains utilities used for testing aiobosh code.
"""
import asyncio
import collections
import logging
import os
import time
import unittest.mock


logger = logging.getLogger(__name__)


GLOBAL_TIMEOUT_FACTOR = 1.0

_monotonic_info = time.get_clock_info("monotonic")
# windows has a coarse monotonic clock
GLOBAL_TIMEOUT_FACTOR *= max(_monotonic_info.resolution, 0.0015) / 0.0015

if os.environ.get("CI") == "true":
    GLOBAL_TIMEOUT_FACTOR *= 4
    logger.debug("increasing GLOBAL_TIMEOUT_FACTOR for CI")


def get_timeout(base):
    return base * GLOBAL_TIMEOUT_FACTOR


DEFAULT_TIMEOUT = get_timeout(1.0)


def run_coroutine(coroutine, timeout=DEFAULT_TIMEOUT):
    async def runner():
        return await asyncio.wait_for(coroutine, timeout=timeout)

    return asyncio.run(runner())


class CoroutineMock(unittest.mock.Mock):
    delay = 0

    async def __call__(self, *args, **kwargs):
        result = super().__call__(*args, **kwargs)
        await asyncio.sleep(self.delay)
        return result


class TransportMock:
    """
    Scripted stand-in for :class:`aiobosh.transport.HTTPTransport`.

    Each entry of `responses` is used for one call to :meth:`post`: strings
    are returned as response text, exception instances are raised. Posting
    more often than responses are available fails the test case.

    .. attribute:: posted

       List of ``(url, body, headers)`` triples, one per call to :meth:`post`.
    """

    Post = collections.namedtuple("Post", ["url", "body", "headers"])

    def __init__(self, test_case, responses):
        super().__init__()
        self._test_case = test_case
        self._responses = list(responses)
        self.posted = []

    @property
    def bodies(self):
        return [post.body for post in self.posted]

    async def post(self, url, body, headers):
        self.posted.append(self.Post(url, body, dict(headers)))
        if not self._responses:
            self._test_case.fail(
                "unexpected request #{}: {}".format(len(self.posted), body)
            )
        response = self._responses.pop(0)
        await asyncio.sleep(0)
        if isinstance(response, BaseException):
            raise response
        return response
