import logging

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

load_dotenv("walletapi/.env")

from walletapi import containers  # noqa: E402
from walletapi.config import settings  # noqa: E402
from walletapi.core.exception_handlers import (  # noqa: E402
    handle_base_api_exception,
    handle_http_exception,
    handle_unexpected_error,
    handle_validation_error,
)
from walletapi.core.exceptions import BaseAPIException  # noqa: E402
from walletapi.core.logging_middleware import LoggingMiddleware  # noqa: E402
from walletapi.logging_config import setup_logging  # noqa: E402
from walletapi.routers import health_router, order_router, payment_router  # noqa: E402

setup_logging(settings.LOG_LEVEL, sql_echo=settings.DEBUG)
logger = logging.getLogger("walletapi")

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
app.container = containers.Container()  # type: ignore

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(BaseAPIException, handle_base_api_exception)
app.add_exception_handler(HTTPException, handle_http_exception)
app.add_exception_handler(RequestValidationError, handle_validation_error)
app.add_exception_handler(Exception, handle_unexpected_error)

app.include_router(health_router.router)
app.include_router(payment_router.router, prefix=settings.API_V1_STR)
app.include_router(order_router.router, prefix=settings.API_V1_STR)


if settings.AUTO_CREATE_TABLES:
    from walletapi.database.connection import engine
    from walletapi.models import Base

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


@app.get("/")
def hello() -> dict:
    return {"message": settings.APP_NAME}


handler = Mangum(app)
