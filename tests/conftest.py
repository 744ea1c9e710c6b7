import asyncio
import random
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c63000100000500010d0a2db40000000049454e44ae426082"
)


@dataclass
class Canned:
    status: int = 200
    content_type: str = "image/png"
    body: bytes = PNG_BYTES
    chunked: bool = False
    delay: float = 0.0
    stall: float = 0.0


class MockImageServer:
    """Local HTTP server replaying canned responses and counting hits.

    A list of responses is replayed in order per path; the last one repeats.
    Unknown paths return 404.
    """

    def __init__(self, routes: Dict[str, Union[Canned, List[Canned]]]) -> None:
        self.routes = {path: value if isinstance(value, list) else [value] for path, value in routes.items()}
        self.hits: Counter = Counter()
        self.in_flight = 0
        self.max_in_flight = 0
        self._server: Optional[TestServer] = None

    async def __aenter__(self) -> "MockImageServer":
        app = web.Application()
        app.router.add_get("/{tail:.*}", self._handle)
        self._server = TestServer(app)
        await self._server.start_server()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self._server.close()

    def url(self, path: str) -> str:
        return str(self._server.make_url(path))

    async def _handle(self, request: web.Request) -> web.StreamResponse:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            return await self._respond(request)
        finally:
            self.in_flight -= 1

    async def _respond(self, request: web.Request) -> web.StreamResponse:
        path = request.path
        self.hits[path] += 1
        responses = self.routes.get(path)
        if not responses:
            return web.Response(status=404, text="Not Found")
        canned = responses[min(self.hits[path], len(responses)) - 1]
        if canned.delay:
            await asyncio.sleep(canned.delay)
        headers = {"Content-Type": canned.content_type}
        if canned.stall:
            # headers (with Content-Length) go out first, the body only after the stall
            resp = web.StreamResponse(status=canned.status, headers=headers)
            resp.content_length = len(canned.body)
            await resp.prepare(request)
            await asyncio.sleep(canned.stall)
            await resp.write(canned.body)
            await resp.write_eof()
            return resp
        if canned.chunked:
            resp = web.StreamResponse(status=canned.status, headers=headers)
            resp.enable_chunked_encoding()
            await resp.prepare(request)
            await resp.write(canned.body)
            await resp.write_eof()
            return resp
        return web.Response(status=canned.status, body=canned.body, headers=headers)


class NoWaitRandom(random.Random):
    """Jitter source that always picks a zero wait."""

    def uniform(self, a, b):
        return 0.0


@pytest.fixture
def image_server():
    return MockImageServer


@pytest.fixture
def canned():
    return Canned


@pytest.fixture
def png_bytes():
    return PNG_BYTES


@pytest.fixture
def no_wait_rng():
    return NoWaitRandom()
