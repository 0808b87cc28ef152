from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """
    Erro de API com o payload padronizado `{error, code, details?}`.

    Herda de HTTPException para que o FastAPI e os handlers globais tratem
    qualquer ApiError como um erro HTTP comum.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        error: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=error, headers=headers)
        self.code = code
        self.error = error
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


# ───────────────────────────
# Atalhos para os códigos mais comuns
# ───────────────────────────

def unauthorized(error: str = "Não autenticado") -> ApiError:
    return ApiError(
        status.HTTP_401_UNAUTHORIZED,
        "UNAUTHORIZED",
        error,
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden(code: str, error: str, details: Optional[Dict[str, Any]] = None) -> ApiError:
    return ApiError(status.HTTP_403_FORBIDDEN, code, error, details)


def not_found(code: str, error: str) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, code, error)


def bad_request(code: str, error: str, details: Optional[Dict[str, Any]] = None) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, code, error, details)


def conflict(code: str, error: str, details: Optional[Dict[str, Any]] = None) -> ApiError:
    return ApiError(status.HTTP_409_CONFLICT, code, error, details)


def internal_error(code: str, error: str) -> ApiError:
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, code, error)


# Código derivado do status quando um HTTPException comum chega ao handler global
STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "INVALID_METHOD",
    409: "CONFLICT",
    429: "SERVICE_UNAVAILABLE",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
}
