"""
Exception handlers globais para capturar e logar erros da API.

Todas as respostas de erro seguem o formato `{error, code, details?}`.
"""
import json
import traceback

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.exceptions import ApiError, STATUS_CODES
from app.utils.logger import logger


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler para erros de validação do FastAPI/Pydantic.
    Responde 400 VALIDATION_ERROR com os campos inválidos.
    """
    error_details = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []))
        error_details.append({
            "field": field,
            "type": error.get("type", "unknown"),
            "message": error.get("msg", "Erro de validação"),
        })

    logger.warning(
        "[VALIDATION ERROR] %s %s - %s",
        request.method,
        request.url.path,
        json.dumps(error_details, ensure_ascii=False),
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Erro de validação nos dados fornecidos",
            "code": "VALIDATION_ERROR",
            "details": {"errors": error_details},
        },
    )


async def http_exception_handler(request: Request, exc):
    """
    Handler para HTTPExceptions (incluindo ApiError).
    """
    status_code = exc.status_code
    log_message = f"[HTTP ERROR {status_code}] {request.method} {request.url.path} - Detalhes: {exc.detail}"

    if status_code >= 500:
        logger.error(log_message)
    elif status_code >= 400:
        logger.info(log_message)

    if isinstance(exc, ApiError):
        content = exc.to_dict()
    else:
        content = {
            "error": str(exc.detail),
            "code": STATUS_CODES.get(status_code, "ERROR"),
        }

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception):
    """
    Handler para exceções não tratadas.
    """
    logger.error(
        "[UNHANDLED EXCEPTION] %s %s - %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
    )
    logger.error(f"[UNHANDLED EXCEPTION] Traceback completo:\n{traceback.format_exc()}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Erro interno do servidor", "code": "INTERNAL_ERROR"},
    )
