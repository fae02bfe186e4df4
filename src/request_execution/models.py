from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from multidict import CIMultiDict, CIMultiDictProxy

from request_execution.context import CallContext


class RequestType(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


@dataclass(frozen=True)
class TransportRequest:
    """
    Wire-level HTTP request handed to the middleware pipeline.
    • method: HTTP method name
    • url: full request URL, query string included
    • headers: one value per header name
    • body: encoded payload, if any
    • context: cancellation/deadline carrier for this call
    Instances are immutable once handed to the pipeline; middleware that
    needs to change headers derives a copy with with_headers().
    """
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None
    context: CallContext = field(default_factory=CallContext.background)

    def __post_init__(self) -> None:
        # snapshot so neither the caller nor middleware can mutate in place
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def with_headers(self, new_headers: Mapping[str, str]) -> TransportRequest:
        """Return a copy of the request with headers added or replaced."""
        return replace(self, headers={**self.headers, **new_headers})


@dataclass(frozen=True)
class TransportResponse:
    """
    Wire-level HTTP response produced by the transport. The body is read in
    full by the transport, so a response can be inspected by several
    middleware (retry, cache) and by the caller without draining a stream.
    """
    status: int
    headers: CIMultiDictProxy[str] = field(
        default_factory=lambda: CIMultiDictProxy(CIMultiDict())
    )
    body: bytes = b""
    reason: str | None = None

    @classmethod
    def build(
        cls,
        status: int,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
        reason: str | None = None,
    ) -> TransportResponse:
        return cls(
            status=status,
            headers=CIMultiDictProxy(CIMultiDict(headers or {})),
            body=body,
            reason=reason,
        )

    @property
    def ok(self) -> bool:
        return self.status < 400

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "").split(";")[0].strip().lower()

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

