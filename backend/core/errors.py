"""
错误码与异常
媒体客户端把媒体服务的错误响应转换为这里的异常；宿主应用把它们统一渲染成 {code, message, data}
"""

from typing import Optional, Any, Dict, Tuple
from enum import IntEnum
from fastapi import status
from fastapi.responses import JSONResponse


class ErrorCode(IntEnum):
    """
    错误码

    - 0: 成功
    - 1xxx: 系统与传输
    - 2xxx: 认证/授权
    - 3xxx: 业务通用
    - 42xx: 媒体模块
    - 5xxx: 外部服务
    """

    SUCCESS = 0

    INTERNAL_ERROR = 1000
    REQUEST_TIMEOUT = 1006
    NETWORK_ERROR = 1008

    UNAUTHORIZED = 2001
    PERMISSION_DENIED = 2004

    VALIDATION_ERROR = 3001
    RESOURCE_NOT_FOUND = 3002
    RESOURCE_CONFLICT = 3004
    OPERATION_FAILED = 3005

    MEDIA_FILE_NOT_FOUND = 4201
    MEDIA_FOLDER_NOT_FOUND = 4202

    EXTERNAL_API_ERROR = 5001


# 错误码 -> (默认消息, HTTP 状态码)
_ERROR_TABLE: Dict[int, Tuple[str, int]] = {
    ErrorCode.SUCCESS: ("操作成功", status.HTTP_200_OK),
    ErrorCode.INTERNAL_ERROR: ("服务器内部错误，请稍后重试", status.HTTP_500_INTERNAL_SERVER_ERROR),
    ErrorCode.REQUEST_TIMEOUT: ("请求超时", status.HTTP_504_GATEWAY_TIMEOUT),
    ErrorCode.NETWORK_ERROR: ("网络连接错误", status.HTTP_502_BAD_GATEWAY),
    ErrorCode.UNAUTHORIZED: ("请先登录", status.HTTP_401_UNAUTHORIZED),
    ErrorCode.PERMISSION_DENIED: ("没有权限执行此操作", status.HTTP_403_FORBIDDEN),
    ErrorCode.VALIDATION_ERROR: ("参数验证失败", status.HTTP_400_BAD_REQUEST),
    ErrorCode.RESOURCE_NOT_FOUND: ("请求的资源不存在", status.HTTP_404_NOT_FOUND),
    ErrorCode.RESOURCE_CONFLICT: ("资源冲突", status.HTTP_409_CONFLICT),
    ErrorCode.OPERATION_FAILED: ("操作失败", status.HTTP_400_BAD_REQUEST),
    ErrorCode.MEDIA_FILE_NOT_FOUND: ("媒体文件不存在", status.HTTP_404_NOT_FOUND),
    ErrorCode.MEDIA_FOLDER_NOT_FOUND: ("媒体文件夹不存在", status.HTTP_404_NOT_FOUND),
    ErrorCode.EXTERNAL_API_ERROR: ("媒体服务调用失败", status.HTTP_502_BAD_GATEWAY),
}

ERROR_MESSAGES: Dict[int, str] = {code: message for code, (message, _) in _ERROR_TABLE.items()}
ERROR_HTTP_STATUS: Dict[int, int] = {code: http_status for code, (_, http_status) in _ERROR_TABLE.items()}


class AppException(Exception):
    """
    应用异常基类

    Usage:
        raise AppException(ErrorCode.RESOURCE_CONFLICT, "同名文件夹已存在")
    """

    def __init__(
        self,
        code: int = ErrorCode.INTERNAL_ERROR,
        message: Optional[str] = None,
        data: Any = None
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "未知错误")
        self.data = data
        self.http_status = ERROR_HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": int(self.code), "message": self.message, "data": self.data}

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.http_status, content=self.to_dict())


class ValidationException(AppException):
    """参数验证失败：媒体服务返回 400/422，或提交的表单在本地就不合法"""

    def __init__(self, message: str = "参数验证失败", errors: Optional[Any] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            data={"errors": errors} if errors else None
        )


class AuthException(AppException):

    def __init__(self, code: int = ErrorCode.UNAUTHORIZED, message: Optional[str] = None):
        super().__init__(code=code, message=message)


class PermissionException(AppException):

    def __init__(self, message: str = "没有权限执行此操作"):
        super().__init__(code=ErrorCode.PERMISSION_DENIED, message=message)


class NotFoundException(AppException):
    """资源不存在，code 可指定为模块级错误码（如 MEDIA_FOLDER_NOT_FOUND）"""

    def __init__(
        self,
        resource: str = "资源",
        resource_id: Any = None,
        code: int = ErrorCode.RESOURCE_NOT_FOUND
    ):
        if resource_id is None:
            message = f"{resource}不存在"
        else:
            message = f"{resource} (ID: {resource_id}) 不存在"
        super().__init__(code=code, message=message)
        self.resource = resource
        self.resource_id = resource_id


class TransportException(AppException):
    """
    传输层异常

    网络错误、超时以及服务端 5xx 均归为此类，status_code 为服务端返回的状态码（网络错误时为 None）
    """

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        code: int = ErrorCode.EXTERNAL_API_ERROR
    ):
        super().__init__(
            code=code,
            message=message,
            data={"status_code": status_code} if status_code else None
        )
        self.status_code = status_code


class TreeInvariantViolation(AssertionError):
    """
    树结构不变量被破坏（菜单树或文件夹树）

    属于调用方的编程错误，不是面向用户的业务异常，因此不继承 AppException，
    异常处理器不会把它转换成普通错误响应
    """

    def __init__(self, message: str, node_ids: Optional[list] = None):
        self.node_ids = node_ids or []
        super().__init__(message)


def register_exception_handlers(app):
    """在 create_app 中注册：AppException、请求参数错误和框架 HTTP 错误都渲染成 {code, message, data}"""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    @app.exception_handler(AppException)
    async def handle_app_exception(request, exc: AppException):
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        return ValidationException(errors=errors).to_response()

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        code = {
            401: ErrorCode.UNAUTHORIZED,
            403: ErrorCode.PERMISSION_DENIED,
            404: ErrorCode.RESOURCE_NOT_FOUND,
        }.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = str(exc.detail) if exc.detail else ERROR_MESSAGES[code]
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": int(code), "message": message, "data": None}
        )
