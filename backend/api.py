"""FastAPI entrypoint for the finance manager HTTP endpoints."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Header
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.auth.supabase_auth import (
    AuthProviderError,
    IdentityVerifier,
    extract_bearer_token,
    get_auth_client,
)
from backend.errors import AuthError, FinanceManagerError, ValidationError
from backend.factory import get_transaction_service, shutdown_transaction_service
from backend.services.transaction_service import build_filters
from shared import config as _config
from shared.models import AuthCredentials


logger = logging.getLogger(__name__)


def get_identity_verifier() -> IdentityVerifier:
    return get_auth_client()


def _resolve_owner_id(authorization: str | None) -> str:
    """Resolve the verified subject id from the authorization header."""

    token = extract_bearer_token(authorization)
    return get_identity_verifier().verify_token(token)


async def _read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc


async def _read_credentials(request: Request) -> AuthCredentials:
    payload = await _read_json_body(request)
    if not isinstance(payload, dict):
        raise ValidationError("Email and password are required")
    try:
        return AuthCredentials.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError("Email and password are required") from exc


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logging.basicConfig(
        level=_config.log_level(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("cors_allow_origins=%s", ALLOW_ORIGINS)
    await get_transaction_service().repository.open()
    try:
        yield
    finally:
        await shutdown_transaction_service()


app = FastAPI(title="Finance Manager API", lifespan=lifespan)

ALLOW_ORIGINS = _config.cors_allow_origins()


@app.middleware("http")
async def log_http_requests(request: Request, call_next):
    """Log incoming requests, HTTP status codes and unexpected errors."""

    logger.info("http_request_received method=%s path=%s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "http_request_failed method=%s path=%s",
            request.method,
            request.url.path,
        )
        raise

    logger.info(
        "http_response_sent method=%s path=%s status_code=%s",
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FinanceManagerError)
async def handle_domain_error(request: Request, exc: FinanceManagerError) -> JSONResponse:
    """Return the domain error message with its mapped status code."""

    logger.info(
        "request_failed method=%s path=%s status_code=%s error=%s",
        request.method,
        request.url.path,
        exc.status_code,
        type(exc).__name__,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Return a JSON 500 response for unhandled exceptions."""

    logger.exception(
        "unhandled_exception method=%s path=%s exception_type=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


@app.get("/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""

    return {"status": "ok"}


@app.post("/auth/signup", status_code=201)
async def sign_up(request: Request) -> dict[str, str]:
    credentials = await _read_credentials(request)
    try:
        session = await run_in_threadpool(
            get_auth_client().sign_up,
            email=credentials.email,
            password=credentials.password,
        )
    except AuthProviderError as exc:
        logger.info("auth_signup_failed status=%s", exc.status)
        raise ValidationError(exc.message) from exc
    return session.model_dump()


@app.post("/auth/signin")
async def sign_in(request: Request) -> dict[str, str]:
    credentials = await _read_credentials(request)
    try:
        session = await run_in_threadpool(
            get_auth_client().sign_in,
            email=credentials.email,
            password=credentials.password,
        )
    except AuthProviderError as exc:
        logger.info("auth_signin_failed status=%s", exc.status)
        raise AuthError("Invalid email or password") from exc
    return session.model_dump()


@app.post("/auth/signout")
async def sign_out(authorization: str | None = Header(default=None)) -> Any:
    token = extract_bearer_token(authorization)
    try:
        await run_in_threadpool(get_auth_client().sign_out, token=token)
    except AuthProviderError as exc:
        logger.warning("auth_signout_failed status=%s", exc.status)
        return JSONResponse(status_code=500, content={"error": "Error signing out"})
    return {"message": "Successfully signed out"}


@app.post("/transactions", status_code=201)
async def create_transaction(
    request: Request,
    authorization: str | None = Header(default=None),
) -> dict[str, str]:
    owner_id = await run_in_threadpool(_resolve_owner_id, authorization)
    payload = await _read_json_body(request)
    transaction_id = await get_transaction_service().create_transaction(owner_id=owner_id, payload=payload)
    return {"message": "Transaction created", "transaction_id": transaction_id}


@app.get("/transactions")
async def list_transactions(
    start_date: str | None = None,
    end_date: str | None = None,
    category: str | None = None,
    is_expense: str | None = None,
    authorization: str | None = Header(default=None),
) -> list[dict[str, Any]]:
    """Return the caller's transactions, most recent first."""

    owner_id = await run_in_threadpool(_resolve_owner_id, authorization)
    filters = build_filters(
        owner_id,
        start_date=start_date,
        end_date=end_date,
        category=category,
        is_expense=is_expense,
    )
    rows = await get_transaction_service().list_transactions(filters)
    return [row.model_dump(mode="json") for row in rows]


@app.get("/transactions/summary")
async def get_transactions_summary(
    start_date: str | None = None,
    end_date: str | None = None,
    category: str | None = None,
    is_expense: str | None = None,
    authorization: str | None = Header(default=None),
) -> dict[str, Any]:
    """Return expense and income totals for the caller's filtered transactions."""

    owner_id = await run_in_threadpool(_resolve_owner_id, authorization)
    filters = build_filters(
        owner_id,
        start_date=start_date,
        end_date=end_date,
        category=category,
        is_expense=is_expense,
    )
    summary = await get_transaction_service().get_summary(filters)
    return summary.model_dump(mode="json")


@app.get("/transactions/summary/categories")
async def get_transactions_category_summary(
    start_date: str | None = None,
    end_date: str | None = None,
    category: str | None = None,
    is_expense: str | None = None,
    authorization: str | None = Header(default=None),
) -> list[dict[str, Any]]:
    owner_id = await run_in_threadpool(_resolve_owner_id, authorization)
    filters = build_filters(
        owner_id,
        start_date=start_date,
        end_date=end_date,
        category=category,
        is_expense=is_expense,
    )
    summaries = await get_transaction_service().get_category_summary(filters)
    return [summary.model_dump(mode="json") for summary in summaries]


@app.put("/transactions/{transaction_id}")
async def update_transaction(
    transaction_id: str,
    request: Request,
    authorization: str | None = Header(default=None),
) -> dict[str, str]:
    owner_id = await run_in_threadpool(_resolve_owner_id, authorization)
    payload = await _read_json_body(request)
    await get_transaction_service().update_transaction(
        owner_id=owner_id,
        transaction_id=transaction_id,
        payload=payload,
    )
    return {"message": "Transaction updated successfully"}


@app.delete("/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    authorization: str | None = Header(default=None),
) -> dict[str, str]:
    owner_id = await run_in_threadpool(_resolve_owner_id, authorization)
    await get_transaction_service().delete_transaction(owner_id=owner_id, transaction_id=transaction_id)
    return {"message": "Transaction deleted successfully"}
