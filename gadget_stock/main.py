import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gadget_stock.config import get_settings
from gadget_stock.db import create_db_and_tables
from gadget_stock.errors import DomainError, Unauthorized
from gadget_stock.logging_config import add_access_log, setup_logging
from gadget_stock.routers import assignments, auth, gadgets, movements, requests, users

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("service started")
    yield
    logger.info("service stopped")


app = FastAPI(title=settings.app_title, lifespan=lifespan)
add_access_log(app)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(gadgets.router)
app.include_router(assignments.router)
app.include_router(requests.router)
app.include_router(movements.router)


@app.get("/health")
def health():
    return {"ok": True}


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"code": "VALIDATION_ERROR", "message": "Invalid input", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
    )
