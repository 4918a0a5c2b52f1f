"""
Redirect Responder.

Small ASGI endpoint that answers one fixed path with a redirect and every
other path with 404. Used to send operators from "/" to the dashboard; it
is not part of the push or authorization paths.
"""

from urllib.parse import urljoin

import structlog
from starlette.requests import Request
from starlette.responses import PlainTextResponse, RedirectResponse, Response
from starlette.types import Receive, Scope, Send

logger = structlog.get_logger(__name__)


class RedirectResponder:
    """
    Usage:
        app = Starlette(routes=[Mount("/", app=RedirectResponder("/", "/dashboard"))])
    """

    def __init__(self, path: str, target: str, status_code: int = 303):
        self.path = path
        self.target = target
        self.status_code = status_code

    def respond(self, request: Request) -> Response:
        if request.url.path != self.path:
            return PlainTextResponse("Not Found", status_code=404)

        location = urljoin(str(request.url), self.target)
        logger.debug("Redirecting", path=request.url.path, location=location)
        return RedirectResponse(location, status_code=self.status_code)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        response = self.respond(request)
        await response(scope, receive, send)
