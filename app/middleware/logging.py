import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Times every request and tags it with a request id.

    A caller-supplied ``X-Request-ID`` is reused so ids line up across
    services; otherwise a fresh UUID is minted. Error envelopes read the id
    back from ``request.state``.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        client = request.client.host if request.client else "-"

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"[{request_id}] {route} failed after {_elapsed_ms(started)}ms",
                extra={"request_id": request_id, "client": client},
            )
            raise

        status_code = response.status_code
        logger.log(
            logging.WARNING if status_code >= 400 else logging.INFO,
            f"[{request_id}] {route} -> {status_code} ({_elapsed_ms(started)}ms)",
            extra={"request_id": request_id, "client": client, "status_code": status_code},
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
