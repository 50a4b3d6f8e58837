from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_pagination import add_pagination
from sqlalchemy.exc import SQLAlchemyError

from lumachor.config import get_settings
from lumachor.errors import ErrorKind, error_body
from lumachor.infra.logging_config import LoggingConfig, get_logger
from lumachor.routers import (
    chat_router,
    chat_search_router,
    contexts_router,
    public_contexts_router,
)


def create_app(testing: bool = False) -> FastAPI:
    settings = get_settings()
    LoggingConfig()
    logger = get_logger("main")

    app = FastAPI(
        title=settings.app_name,
        description="Chat backend with a reusable context library",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Stream-Id"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "detail": error_body(
                    ErrorKind.VALIDATION,
                    "Invalid request body.",
                    errors=jsonable_encoder(exc.errors()),
                )
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={
                "detail": error_body(
                    ErrorKind.DATABASE, "An error occurred while executing a database query."
                )
            },
        )

    @app.get("/health", tags=["system"])
    def health_check():
        return {"status": "ok"}

    app.include_router(chat_router.router)
    app.include_router(chat_search_router.router)
    app.include_router(contexts_router.router)
    app.include_router(public_contexts_router.router)

    add_pagination(app)

    if not testing:
        logger.info("Started %s (env=%s)", settings.app_name, settings.environment)

    return app


app = create_app()
