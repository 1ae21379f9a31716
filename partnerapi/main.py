import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from mangum import Mangum
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from partnerapi import containers
from partnerapi.config import settings
from partnerapi.core.exception_handlers import (
    handle_base_api_exception,
    handle_http_exception,
    handle_unexpected_error,
    handle_validation_error,
)
from partnerapi.core.exceptions import BaseAPIException
from partnerapi.core.logging_middleware import LoggingMiddleware
from partnerapi.logging_config import setup_logging
from partnerapi.routers import (
    admin_router,
    auth_router,
    deal_router,
    health_router,
    notification_router,
    point_router,
    report_router,
    reward_router,
    support_router,
    user_router,
)

load_dotenv("partnerapi/.env")
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("partnerapi")


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(health_router.router)
    for module in (
        deal_router,
        point_router,
        reward_router,
        user_router,
        admin_router,
        report_router,
        notification_router,
        support_router,
        auth_router,
    ):
        app.include_router(module.router, prefix=settings.API_V1_STR)

    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    return app


app = create_app()

handler = Mangum(app)
