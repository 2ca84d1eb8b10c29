import asyncio
import io
import os
import shutil
import time
import unittest
from mocksy.core.server import MockServer, build_http_response
from mocksy.core.loader import ResponseLoader
from mocksy.core.parser import HttpStreamParser, ParserMode
from mocksy.core.response import Response
from mocksy.core.filters import FilterError, ResponseFilter, UpperCaseFilter


class FailingFilter(ResponseFilter):
    def filter(self, stream):
        raise FilterError("boom")


class FakeJournal:
    def __init__(self):
        self.records = []

    async def record(self, req, response_id, status_code):
        self.records.append((req.method, req.path, response_id, status_code))
        return len(self.records)


class TestMockServer(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.test_dir = "tests/responses_server"
        if os.path.exists(self.test_dir):
            shutil.rmtree(self.test_dir)
        os.makedirs(self.test_dir)

        self.loader = ResponseLoader(self.test_dir)
        self.loader.responses = {
            "index": Response("index", "welcome"),
            "hello": Response("hello", io.BytesIO(b"hello"), [UpperCaseFilter()]),
            "api/data": Response("api/data", '{"ok": true}', content_type="application/json"),
            "slow": Response("slow", "zzz", delay=200),
            "broken": Response("broken", "x", [FailingFilter()]),
        }
        self.journal = FakeJournal()

        self.server = MockServer('127.0.0.1', 0, self.loader, self.journal)
        self.server_task = asyncio.create_task(self.server.start())
        while self.server.server is None:
            await asyncio.sleep(0.01)

    async def asyncTearDown(self):
        self.server_task.cancel()
        try:
            await self.server_task
        except asyncio.CancelledError:
            pass
        shutil.rmtree(self.test_dir)

    async def exchange(self, raw: bytes):
        reader, writer = await asyncio.open_connection('127.0.0.1', self.server.port)
        writer.write(raw)
        await writer.drain()

        data = await asyncio.wait_for(reader.read(), timeout=5)
        writer.close()
        await writer.wait_closed()

        parser = HttpStreamParser(mode=ParserMode.RESPONSE)
        return parser.feed(data)

    async def get(self, path: str):
        msgs = await self.exchange(f"GET {path} HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n".encode())
        self.assertEqual(len(msgs), 1)
        return msgs[0]

    async def test_filtered_response(self):
        res = await self.get("/hello")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.headers["Content-Type"], "text/plain")
        self.assertEqual(res.body, b"HELLO")

    async def test_index_and_nested_ids(self):
        res = await self.get("/")
        self.assertEqual(res.body, b"welcome")

        res = await self.get("/api/data?x=1")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.headers["Content-Type"], "application/json")
        self.assertEqual(res.body, b'{"ok": true}')

    async def test_not_found(self):
        res = await self.get("/nothing")
        self.assertEqual(res.status_code, 404)
        self.assertEqual(self.journal.records[-1], ("GET", "/nothing", None, 404))

    async def test_filter_failure_is_500(self):
        with self.assertLogs("mocksy.core.server", level="ERROR"):
            res = await self.get("/broken")
        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.body, b"boom")

    async def test_delay(self):
        started = time.monotonic()
        res = await self.get("/slow")
        self.assertGreaterEqual(time.monotonic() - started, 0.2)
        self.assertEqual(res.body, b"zzz")

    async def test_pipelined_requests(self):
        raw = (
            b"GET /hello HTTP/1.1\r\nHost: localhost\r\n\r\n"
            b"GET /api/data HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n"
        )
        msgs = await self.exchange(raw)
        self.assertEqual([m.body for m in msgs], [b"HELLO", b'{"ok": true}'])
        self.assertEqual([r[2] for r in self.journal.records], ["hello", "api/data"])

    async def test_concurrent_clients(self):
        results = await asyncio.gather(*(self.get("/hello") for _ in range(10)))
        self.assertEqual({r.body for r in results}, {b"HELLO"})
        self.assertEqual(len(self.journal.records), 10)

    async def test_bad_request(self):
        msgs = await self.exchange(b"\x00\x01 garbage\r\n\r\n")
        self.assertEqual(msgs[0].status_code, 400)


class TestBuildResponse(unittest.TestCase):
    def test_headers(self):
        raw = build_http_response(200, b"abc", "text/html", keep_alive=False)
        self.assertTrue(raw.startswith(b"HTTP/1.1 200 OK\r\n"))
        self.assertIn(b"Content-Length: 3\r\n", raw)
        self.assertIn(b"Connection: close\r\n", raw)
        self.assertTrue(raw.endswith(b"\r\n\r\nabc"))

    def test_head_has_no_body(self):
        raw = build_http_response(200, b"abc", include_body=False)
        self.assertIn(b"Content-Length: 3\r\n", raw)
        self.assertTrue(raw.endswith(b"\r\n\r\n"))

if __name__ == "__main__":
    unittest.main()
