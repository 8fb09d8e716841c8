import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from shared.core.auth import identify_request
from ..services.host_resolver import (PlatformHostPolicy,
                                      build_site_raw_path, resolve_host)

logger = logging.getLogger(__name__)


class HostResolverMiddleware(BaseHTTPMiddleware):
    """Routes tenant hosts to ``/site/{host}{path}``; platform hosts pass through.

    Method, query string and body are never touched. The resolution and the
    caller's verified identity (or None) are attached to ``request.state``.
    """

    def __init__(self, app, policy: Optional[PlatformHostPolicy] = None):
        super().__init__(app)
        self.policy = policy

    async def dispatch(self, request: Request, call_next: Callable):
        raw_host = request.headers.get("host")
        resolution = resolve_host(
            raw_host,
            request.scope.get("path", ""),
            request.scope.get("query_string", b"").decode("latin-1"),
            self.policy,
        )

        if resolution.path != resolution.original_path:
            request.scope["path"] = resolution.path
            if resolution.is_tenant:
                logger.info("Rewrote %s%s -> %s", resolution.host,
                            resolution.original_path, resolution.path)
                # keep the client's percent-encoding, only prefix it
                raw_path = (request.scope.get("raw_path")
                            or resolution.original_path.encode("utf-8"))
                request.scope["raw_path"] = build_site_raw_path(resolution.host, raw_path)
            else:
                request.scope["raw_path"] = b""

        request.state.host_resolution = resolution
        request.state.identity = identify_request(request)

        response = await call_next(request)
        response.headers["x-domain"] = resolution.host if resolution.is_tenant else "app"
        response.headers["x-hostname"] = raw_host or ""
        return response
