import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import admin as admin_router
from app.api.routes import auth
from app.api.routes import meetings as meetings_router
from app.api.routes import notifications as notifications_router
from app.api.routes import offers as offers_router
from app.api.routes import ratings as ratings_router
from app.api.routes import reports as reports_router
from app.api.routes import users as users_router
from app.core.config import LOG_LEVEL
from app.core.errors import OlmaError
from app.db.init_db import init_db
from app.schemas.common import failure

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "VALIDATION_ERROR",
    409: "CONFLICT",
    429: "RATE_LIMITED",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("OLMA meetings API starting up...")
    init_db()
    yield
    logger.info("OLMA meetings API shutting down...")


app = FastAPI(title="OLMA Meetings API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(OlmaError)
async def olma_error_handler(request: Request, exc: OlmaError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=failure(exc.code, exc.message))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid data")
    else:
        message = "Invalid data"
    return JSONResponse(status_code=400, content=failure("VALIDATION_ERROR", message))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, "INTERNAL_ERROR" if exc.status_code >= 500 else "VALIDATION_ERROR")
    return JSONResponse(status_code=exc.status_code, content=failure(code, str(exc.detail)))


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=failure("INTERNAL_ERROR", "Internal server error"))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=failure("INTERNAL_ERROR", "Internal server error"))


@app.get("/")
def root():
    return {"success": True, "message": "OLMA meetings API running"}


app.include_router(auth.router)
# /meetings/ratings and /meetings/reports must be registered ahead of /meetings/{id}
app.include_router(ratings_router.router)
app.include_router(reports_router.router)
app.include_router(meetings_router.router)
app.include_router(offers_router.router)
app.include_router(users_router.router)
app.include_router(admin_router.router)
app.include_router(notifications_router.router)
