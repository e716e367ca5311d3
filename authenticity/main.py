import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authenticity.api.routes import CORS_HEADERS, router as api_router
from authenticity.errors import AuthenticationError
from authenticity.storage.db import init_db

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


async def _auth_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=CORS_HEADERS)


def create_app() -> FastAPI:
    app = FastAPI(title="Content Authenticity API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AuthenticationError, _auth_error_handler)
    app.include_router(api_router)
    return app


app = create_app()


@app.on_event("startup")
def _startup_init_db() -> None:
    # Best-effort table creation for local/dev runs.
    # If DATABASE_URL points at an unreachable DB, API can still start.
    try:
        init_db()
    except Exception as exc:
        logger.warning("[Startup] init_db failed: %s", exc)
