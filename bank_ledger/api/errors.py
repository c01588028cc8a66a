"""
Error-to-status mapping for the HTTP adapter.

Each ledger error maps to a fixed status code and message. Responses never
carry stack traces or internal identifiers; the detail goes to the log only.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import (
    LedgerError, InvalidDetailsSuppliedError, InvalidCredentialsError,
    NotAllowedError, NotFoundError, UserHasAccountsError,
    InsufficientFundsError, UnexpectedError
)
from ..logging_config import get_logger


logger = get_logger("bank_ledger.api")

# Most specific class first; lookup walks the exception's MRO
ERROR_STATUS_CODES = {
    InvalidDetailsSuppliedError: 400,
    InvalidCredentialsError: 401,
    NotAllowedError: 403,
    NotFoundError: 404,
    UserHasAccountsError: 409,
    InsufficientFundsError: 422,
    UnexpectedError: 500,
}


def status_for(exc: LedgerError) -> int:
    """Status code for a ledger error"""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


def _error_response(status_code: int, message: str) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content={"message": message}, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    """Register all ledger error handlers on the FastAPI application"""

    @app.exception_handler(LedgerError)
    async def handle_ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail or exc.message}")
            return _error_response(status_code, UnexpectedError.message)

        logger.warning(f"{request.method} {request.url.path} rejected ({status_code}): {exc.detail or exc.message}")
        return _error_response(status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} rejected (400): {len(exc.errors())} validation error(s)")
        return _error_response(400, InvalidDetailsSuppliedError.message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"{request.method} {request.url.path} raised an unexpected error", exc_info=exc)
        return _error_response(500, UnexpectedError.message)
