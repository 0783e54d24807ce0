import time, uuid, logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .errors import error_response
from .schemas.common import RelayErrorResp

logger = logging.getLogger("mineru_relay")


class TraceLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get("X-Trace-Id") or str(uuid.uuid4())
        start = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            duration = round((time.time() - start)*1000, 2)
            logger.exception({"trace_id": trace_id, "path": request.url.path, "err": str(e), "ms": duration})
            # 未预期的异常也返回统一错误体，保证外层 CORS 头仍然生效
            response = error_response(500, RelayErrorResp(message="Internal server error"))
        else:
            duration = round((time.time() - start)*1000, 2)
            logger.info({
                "trace_id": trace_id,
                "path": request.url.path,
                "method": request.method,
                "status": response.status_code,
                "ms": duration
            })
        response.headers["X-Trace-Id"] = trace_id
        return response
