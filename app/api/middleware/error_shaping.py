from __future__ import annotations

import logging
import traceback
from typing import Any, Callable, Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from app.core.behaviors.contract import BehaviorApplicationError

log = logging.getLogger("reposcm.errors")


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Behavior aborts surface as 409 with their reason (they are meant for the user)
    - Anything else is a 500 without stack traces
    - Preserve request_id if present
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except BehaviorApplicationError as e:
            rid = self._request_id(request)
            log.warning("Behavior aborted request rid=%s path=%s reason=%s", rid, request.url.path, e)
            return JSONResponse(status_code=409, content=self._payload(str(e) or "Behavior aborted", rid))
        except Exception as e:
            rid = self._request_id(request)
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            return JSONResponse(status_code=500, content=self._payload("Internal Server Error", rid))

    @staticmethod
    def _request_id(request: Request):
        return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")

    @staticmethod
    def _payload(detail: str, rid) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": detail}
        if rid:
            payload["request_id"] = rid
        return payload
