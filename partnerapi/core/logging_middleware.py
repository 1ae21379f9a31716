import logging
import time
import uuid
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

# Use the partnerapi logger so it goes to the JSON handler
logger = logging.getLogger("partnerapi")

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 한 줄 로그 + 요청 ID 전파

    인증된 요청이면 auth 의존성이 request.state.user_id 를 남기므로
    응답 로그에 actor 로 함께 기록합니다.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        target = f"{request.method} {request.url.path}"
        client = request.client.host if request.client else "-"

        logger.info(f"[Request {request_id}] {target} from {client}")
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[Unhandled Error {request_id}] {target} from {client}")
            raise

        actor = getattr(request.state, "user_id", None) or "anonymous"
        duration_ms = (time.perf_counter() - start) * 1000
        message = (
            f"[Response {request_id}] {target} actor={actor} "
            f"-> {response.status_code} in {duration_ms:.1f}ms"
        )
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
