from fastapi import APIRouter, Request
from fastapi.responses import Response

from cors_proxy.forwarding.handler import ForwardingHandler

router = APIRouter()

METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def get_handler(request: Request) -> ForwardingHandler:
    return request.app.state.forwarding_handler


@router.api_route("/{path:path}", methods=METHODS, include_in_schema=False)
async def proxy_all(request: Request) -> Response:
    """Catch-all route: preflight, demo page or forward, decided by the handler."""
    return await get_handler(request).handle(request)
