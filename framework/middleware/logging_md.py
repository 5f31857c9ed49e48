import re
import uuid
import time
from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from framework.logging.logger import _current_request

# Invitation tokens travel in the path and grant account creation
_INVITE_TOKEN_RE = re.compile(r"(/invite/)[^/]+")


def redact_path(path: str) -> str:
    """Mask secrets carried in URL paths before they reach the logs."""
    return _INVITE_TOKEN_RE.sub(r"\1***", path)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
        request.state.trace_id = trace_id
        token = _current_request.set(request)
        path = redact_path(request.url.path)

        with logger.contextualize(trace_id=trace_id):
            start_time = time.time()

            logger.info(
                f"Request Started | Method: {request.method} | Path: {path} | "
                f"Client: {request.client.host if request.client else 'unknown'}"
            )

            try:
                response = await call_next(request)
                process_time = (time.time() - start_time) * 1000
                logger.info(
                    f"Request Finished | Path: {path} | Status: {response.status_code} | "
                    f"Duration: {process_time:.2f}ms"
                )
                response.headers["X-Trace-ID"] = trace_id
                return response

            except Exception as e:
                process_time = (time.time() - start_time) * 1000
                logger.error(
                    f"Request Failed | Path: {path} | Error: {type(e).__name__} | Duration: {process_time:.2f}ms"
                )
                raise e from None
            finally:
                _current_request.reset(token)
