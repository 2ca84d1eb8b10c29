from typing import Dict, List, Union
from dataclasses import dataclass, field
from enum import Enum
import httptools

class ParserMode(Enum):
    REQUEST = "REQUEST"
    RESPONSE = "RESPONSE"

@dataclass
class HttpRequest:
    method: str = ""
    path: str = ""
    query: str = ""
    version: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    keep_alive: bool = True
    client_ip: str = ""

    @property
    def data(self) -> str:
        return self.body.decode('utf-8', errors='ignore')

    def __repr__(self):
        return f"<HttpRequest {self.method} {self.path}>"

@dataclass
class HttpResponse:
    status_code: int = 0
    version: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __repr__(self):
        return f"<HttpResponse {self.status_code}>"

class HttpStreamParser:
    """Incremental HTTP/1.x parser; feed() returns the messages completed so far."""

    def __init__(self, mode: ParserMode = ParserMode.REQUEST):
        self.mode = mode
        self.completed_messages: List[Union[HttpRequest, HttpResponse]] = []

        self._current_headers = {}
        self._current_body = b""
        self._current_url = b""

        if mode == ParserMode.REQUEST:
            self._parser = httptools.HttpRequestParser(self)
        else:
            self._parser = httptools.HttpResponseParser(self)

    def feed(self, data: bytes) -> List[Union[HttpRequest, HttpResponse]]:
        # HttpParserError летит наверх, сервер отвечает 400
        self._parser.feed_data(data)

        results = self.completed_messages
        self.completed_messages = []
        return results

    def on_message_begin(self):
        self._current_headers = {}
        self._current_url = b""
        self._current_body = b""

    def on_url(self, url: bytes):
        self._current_url += url

    def on_header(self, name: bytes, value: bytes):
        key = name.decode('utf-8', errors='replace')
        val = value.decode('utf-8', errors='replace')
        self._current_headers[key] = val

    def on_body(self, body: bytes):
        self._current_body += body

    def on_message_complete(self):
        version = self._parser.get_http_version()

        if self.mode == ParserMode.REQUEST:
            url = httptools.parse_url(self._current_url)
            msg = HttpRequest(
                method=self._parser.get_method().decode('utf-8', errors='replace'),
                path=(url.path or b"/").decode('utf-8', errors='replace'),
                query=(url.query or b"").decode('utf-8', errors='replace'),
                version=version,
                headers=self._current_headers,
                body=self._current_body,
                keep_alive=self._parser.should_keep_alive()
            )
        else:
            msg = HttpResponse(
                status_code=self._parser.get_status_code(),
                version=version,
                headers=self._current_headers,
                body=self._current_body
            )

        self.completed_messages.append(msg)
