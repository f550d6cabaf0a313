# api/main.py
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from core.config import settings
from core.exceptions import (
    AuthenticationError, ConflictError, InvalidTransitionError, NotFoundError, PermissionDeniedError
)
from core.sa.database import db
from core.utils.logging import setup_logging
from api.routes import (
    admin, auth, books, borrow_requests, communities, messages, notifications, realtime, reviews, search, users
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    db.init_db()
    logger.info("BookShare API started")
    yield
    logger.info("BookShare API stopped")


app = FastAPI(title="BookShare", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(AuthenticationError)
async def authentication_handler(request: Request, exc: AuthenticationError):
    response = _error(status.HTTP_401_UNAUTHORIZED, exc)
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(PermissionDeniedError)
async def permission_handler(request: Request, exc: PermissionDeniedError):
    return _error(status.HTTP_403_FORBIDDEN, exc)


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return _error(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return _error(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error(status.HTTP_400_BAD_REQUEST, exc)


for module in (auth, users, books, borrow_requests, messages, notifications, reviews, communities, search, admin):
    app.include_router(module.router, prefix="/api")
app.include_router(communities.invitations_router, prefix="/api")
app.include_router(realtime.router)

Path(settings.storage_dir).mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=settings.storage_dir), name="storage")


@app.get("/health")
async def health():
    return {"status": "ok"}
