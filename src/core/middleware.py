import time

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from core.config import settings


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """모든 HTTP 요청을 로깅하는 미들웨어.

    기록 항목: 메서드, 경로(+쿼리), 클라이언트 IP, 상태코드, 처리시간(ms)
    처리시간이 SLOW_REQUEST_MS를 넘으면 WARNING 레벨로 기록.
    압축 캐시 미스 요청은 보통 여기서 slow로 잡힌다.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start) * 1000
        client_ip = request.client.host if request.client else "unknown"
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        status = response.status_code

        if elapsed_ms > settings.SLOW_REQUEST_MS:
            logger.warning(
                f"{request.method} {target} | {client_ip} | {status} | {elapsed_ms:.0f}ms (slow)"
            )
        else:
            logger.info(
                f"{request.method} {target} | {client_ip} | {status} | {elapsed_ms:.0f}ms"
            )

        return response
