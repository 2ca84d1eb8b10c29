import asyncio
import logging
import time
from http import HTTPStatus
from typing import Optional, Tuple
import httptools
from mocksy.core.parser import HttpStreamParser, ParserMode, HttpRequest, HttpResponse
from mocksy.core.logger import format_http_message, format_served
from mocksy.core.loader import ResponseLoader
from mocksy.core.journal import RequestJournal
from mocksy.core.filters import FilterError

logger = logging.getLogger(__name__)

INDEX_ID = "index"
SERVER_NAME = "Mocksy"


def build_http_response(status_code: int, body: bytes, content_type: str = "text/plain",
                        keep_alive: bool = True, include_body: bool = True) -> bytes:
    reason = HTTPStatus(status_code).phrase
    headers = [
        f"HTTP/1.1 {status_code} {reason}",
        f"Server: {SERVER_NAME}",
        f"Content-Type: {content_type}",
        f"Content-Length: {len(body)}",
        f"Connection: {'keep-alive' if keep_alive else 'close'}",
    ]
    head = ("\r\n".join(headers) + "\r\n\r\n").encode('latin-1')
    return head + body if include_body else head


class MockServer:
    def __init__(self, listen_host: str, listen_port: int, loader: ResponseLoader, journal: Optional[RequestJournal] = None):
        self.listen_host = listen_host
        self.listen_port = listen_port
        self.loader = loader
        self.journal = journal
        self.server = None

    async def start(self):
        self.server = await asyncio.start_server(
            self.handle_client, self.listen_host, self.listen_port
        )
        logger.info(f"Mock server listening on {self.listen_host}:{self.listen_port} ({len(self.loader)} responses)")
        async with self.server:
            await self.server.serve_forever()

    @property
    def port(self) -> int:
        # полезно, если слушаем на порту 0
        if self.server and self.server.sockets:
            return self.server.sockets[0].getsockname()[1]
        return self.listen_port

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        peer_name = writer.get_extra_info('peername')
        client_ip = peer_name[0] if peer_name else ""
        logger.debug(f"New connection from {peer_name}")

        parser = HttpStreamParser(mode=ParserMode.REQUEST)

        try:
            while True:
                data = await reader.read(4096)
                if not data:
                    break

                try:
                    requests = parser.feed(data)
                except httptools.HttpParserError as e:
                    logger.warning(f"Bad request from {peer_name}: {e}")
                    writer.write(build_http_response(400, b"Bad Request", keep_alive=False))
                    await writer.drain()
                    break

                keep_alive = True
                for req in requests:
                    req.client_ip = client_ip
                    await self.serve(req, writer)
                    if not req.keep_alive:
                        keep_alive = False
                        break

                if not keep_alive:
                    break

        except asyncio.CancelledError:
            pass
        except ConnectionError as e:
            logger.debug(f"Connection {peer_name} dropped: {e}")
        except Exception as e:
            logger.error(f"Error handling {peer_name}: {e}")
        finally:
            logger.debug(f"Connection closed for {peer_name}")
            writer.close()

    def route(self, req: HttpRequest) -> str:
        response_id = req.path.strip("/")
        return response_id or INDEX_ID

    async def respond(self, req: HttpRequest) -> Tuple[Optional[str], int, str, bytes]:
        response_id = self.route(req)
        response = self.loader.get(response_id)
        if response is None:
            return None, 404, "text/plain", f"No mock response for {req.path}".encode('utf-8')

        if response.delay:
            await asyncio.sleep(response.delay / 1000.0)

        try:
            # материализация и фильтры блокируют, уносим в поток
            body = await asyncio.to_thread(response.render, True)
        except (FilterError, OSError) as e:
            logger.error(f"Failed to render response '{response_id}': {e}")
            return response_id, 500, "text/plain", str(e).encode('utf-8')

        return response_id, 200, response.content_type, body

    async def serve(self, req: HttpRequest, writer: asyncio.StreamWriter):
        started = time.monotonic()
        logger.debug(f"\n{'-'*40}\nHTTP REQUEST:\n{format_http_message(req)}\n{'-'*40}")

        response_id, status_code, content_type, body = await self.respond(req)

        writer.write(build_http_response(
            status_code, body, content_type,
            keep_alive=req.keep_alive,
            include_body=req.method != "HEAD"
        ))
        await writer.drain()

        logger.info(format_served(req, response_id, status_code, len(body), time.monotonic() - started))
        if logger.isEnabledFor(logging.DEBUG):
            sent = HttpResponse(status_code=status_code, version="1.1",
                                headers={"Content-Type": content_type}, body=body)
            logger.debug(f"\n{'-'*40}\nHTTP RESPONSE:\n{format_http_message(sent)}\n{'-'*40}")

        if self.journal:
            await self.journal.record(req, response_id, status_code)
