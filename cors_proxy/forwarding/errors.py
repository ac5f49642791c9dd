from enum import Enum
from typing import Optional

from fastapi.responses import PlainTextResponse

ALLOW_ORIGIN_HEADER = "Access-Control-Allow-Origin"


class ProxyErrorKind(Enum):
    ORIGIN_REJECTED = (403, "Origin not allowed")
    INVALID_TARGET_URL = (400, "Invalid target URL")
    REQUEST_CONSTRUCTION_FAILED = (500, "Failed to create proxy request")
    UPSTREAM_CALL_FAILED = (500, "Proxy error")

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message


class ProxyError(Exception):
    """A request-scoped failure, turned into a plain-text response at the edge."""

    def __init__(
        self,
        kind: ProxyErrorKind,
        detail: Optional[str] = None,
        allow_origin: Optional[str] = None,
    ):
        self.kind = kind
        self.detail = detail
        # Only set for failures that happen after the origin was accepted
        self.allow_origin = allow_origin
        super().__init__(self.text)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @property
    def text(self) -> str:
        if self.kind is ProxyErrorKind.UPSTREAM_CALL_FAILED:
            return f"{self.kind.message}: {self.detail or 'unknown error'}"
        return self.kind.message

    def to_response(self) -> PlainTextResponse:
        headers = {"X-Content-Type-Options": "nosniff"}
        if self.allow_origin is not None:
            headers[ALLOW_ORIGIN_HEADER] = self.allow_origin
        return PlainTextResponse(
            f"{self.text}\n", status_code=self.status_code, headers=headers
        )
