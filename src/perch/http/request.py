"""The request the dispatcher reads.

Metadata is frozen at creation. The body is pulled from the ASGI
``receive`` callable on first access and cached, so middleware and the
controller can both read it.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any
from urllib.parse import parse_qsl

from perch._internal.asgi import Receive
from perch.http.headers import Headers


async def _no_body() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


def _parse_query(query_string: bytes) -> Mapping[str, str]:
    # A repeated key keeps its last value
    pairs = parse_qsl(query_string.decode("latin-1"), keep_blank_values=True)
    return MappingProxyType(dict(pairs))


@dataclass(frozen=True, slots=True)
class Request:
    """An HTTP request.

    ``path_params`` is empty until the dispatcher attaches the matched
    route's path variables with ``with_path_params``.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    path_params: Mapping[str, Any] = field(default_factory=dict)
    client: tuple[str, int] | None = None
    _receive: Receive = field(default=_no_body, repr=False, compare=False)
    # Shared between copies made by with_path_params
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def with_path_params(self, path_params: Mapping[str, Any]) -> Request:
        """A copy carrying *path_params*. A body already read stays readable."""
        return replace(self, path_params=dict(path_params))

    async def body(self) -> bytes:
        """The whole body. Read from the server once, then served from cache."""
        if "body" not in self._cache:
            buffer = bytearray()
            more_body = True
            while more_body:
                message = await self._receive()
                buffer += message.get("body", b"")
                more_body = message.get("more_body", False)
            self._cache["body"] = bytes(buffer)
        return self._cache["body"]

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        return json.loads(await self.body())

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], receive: Receive) -> Request:
        """Build a request from an ASGI HTTP scope."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers.from_asgi(scope.get("headers", ())),
            query=_parse_query(scope.get("query_string", b"")),
            client=(client[0], client[1]) if client else None,
            _receive=receive,
        )

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        query_string: bytes = b"",
        body: bytes = b"",
    ) -> Request:
        """Build a request without a server, with the body already in hand.

        ::

            request = Request.build("POST", "/users", body=b'{"name": "dave"}')
        """
        request = cls(
            method=method.upper(),
            path=path,
            headers=Headers((headers or {}).items()),
            query=_parse_query(query_string),
        )
        request._cache["body"] = body
        return request
