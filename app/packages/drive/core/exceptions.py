"""异常处理模块：定义业务异常分类，并在边界处统一转换为 JSON 错误响应。

所有业务异常都继承 ``AppException``（即 ``HTTPException``），由全局处理器
映射为固定的 HTTP 状态码与简短的错误信息；未预料的异常统一返回 500，
不向调用方暴露堆栈或内部标识。
"""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.packages.drive.core.logger import logger


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"

    def __init__(self, msg: str | None = None, code: int | None = None, data: Any = None) -> None:
        super().__init__(status_code=code or self.default_status, detail=msg or self.default_message)
        self.data = data


class UnauthenticatedError(AppException):
    default_status = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(AppException):
    default_status = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class InvalidInputError(AppException):
    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class NotFoundError(AppException):
    default_status = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(AppException):
    default_status = status.HTTP_409_CONFLICT
    default_message = "A file or folder with this name already exists in this folder"


def error_payload(message: str, code: int, data: Any = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": False, "error": message, "code": code}
    if data is not None:
        payload["data"] = data
    return payload


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 ``HTTPException`` 转换为统一的错误响应结构。"""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(str(exc.detail), exc.status_code, getattr(exc, "data", None)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # pragma: no cover - framework glue
    """请求体无法解析或结构不符时按 InvalidInput 处理。"""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": str(err.get("msg", ""))}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload("Invalid request body", status.HTTP_400_BAD_REQUEST, errors),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：记录堆栈，并返回不含内部细节的 500 响应。"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR),
    )
