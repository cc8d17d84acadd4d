"""Writes a Response to an ASGI ``send`` callable."""

from perch._internal.asgi import Send
from perch.http.response import Response

# Statuses that never carry a body
_BODYLESS = frozenset({204, 304})


def encode_headers(response: Response, content_length: int) -> list[tuple[bytes, bytes]]:
    """The response's headers as ASGI byte pairs, framing headers first."""
    pairs = [("content-type", response.content_type), ("content-length", str(content_length))]
    pairs.extend((name.lower(), value) for name, value in response.headers)
    return [(name.encode("latin-1"), value.encode("latin-1")) for name, value in pairs]


async def send_response(response: Response, send: Send) -> None:
    """Send *response* as one start message and one body message."""
    status = response.status
    body = b"" if status < 200 or status in _BODYLESS else response.body_bytes
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": encode_headers(response, len(body)),
        }
    )
    await send({"type": "http.response.body", "body": body})
