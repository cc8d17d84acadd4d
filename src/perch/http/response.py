"""The response a dispatch produces.

Frozen; ``with_status`` and ``with_header`` return modified copies.
``Response()`` is the empty 200 that dispatch falls back to when a target
returns nothing.
"""

import json
from dataclasses import dataclass, replace
from typing import Any

HTML = "text/html; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """Body, status, content type, and extra headers in the order they were added."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = HTML
    headers: tuple[tuple[str, str], ...] = ()

    @classmethod
    def json(cls, data: Any, *, status: int = 200) -> "Response":
        """Serialize *data* as the body, with ``application/json``."""
        return cls(json.dumps(data), status=status, content_type="application/json")

    def with_status(self, status: int) -> "Response":
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> "Response":
        return replace(self, headers=(*self.headers, (name, value)))

    def header(self, name: str) -> str | None:
        """First value of header *name*, compared case-insensitively."""
        return next((v for k, v in self.headers if k.lower() == name.lower()), None)

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def text(self) -> str:
        return self.body.decode("utf-8") if isinstance(self.body, bytes) else self.body
