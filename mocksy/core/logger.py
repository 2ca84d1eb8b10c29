from typing import Union
from mocksy.core.parser import HttpRequest, HttpResponse

BODY_PREVIEW = 500

def format_http_message(msg: Union[HttpRequest, HttpResponse]) -> str:

    lines = []

    if isinstance(msg, HttpRequest):
        target = f"{msg.path}?{msg.query}" if msg.query else msg.path
        title = f"> {msg.method} {target} HTTP/{msg.version}"
        prefix = "> "
    else:
        title = f"< HTTP/{msg.version} {msg.status_code}"
        prefix = "< "

    lines.append(title)

    for key, val in msg.headers.items():
        lines.append(f"{prefix}{key}: {val}")

    lines.append(prefix)

    if msg.body:
        body_preview = msg.body[:BODY_PREVIEW]
        try:
            lines.append(body_preview.decode('utf-8'))
        except UnicodeDecodeError:
            lines.append(f"[Binary: {len(msg.body)} bytes]")

        if len(msg.body) > BODY_PREVIEW:
            lines.append(f"... ({len(msg.body) - BODY_PREVIEW} more bytes)")

    return "\n".join(lines)

def format_served(request: HttpRequest, response_id: str, status_code: int, length: int, elapsed: float) -> str:
    target = response_id if response_id else "-"
    return f"{request.client_ip or '-'} \"{request.method} {request.path}\" -> {target} {status_code} {length}b {elapsed * 1000:.1f}ms"
