"""
媒体接口客户端
将文件夹/文件的增删改查转换为对媒体服务的 HTTP 调用

每次调用只发出一个请求：不重试、不缓存，错误原样抛给调用方
"""

import logging
import mimetypes
from typing import Any, BinaryIO, Dict, List, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

from core.config import Settings, get_settings
from core.errors import (
    ErrorCode,
    AppException,
    ValidationException,
    AuthException,
    NotFoundException,
    PermissionException,
    TransportException,
)
from .media_schemas import (
    MediaFile, MediaFileUpdate,
    MediaFolder, MediaFolderCreate, MediaFolderUpdate,
    FolderTreeNode, SingleResponse, ListResponse,
)
from .media_tree import build_folder_tree

logger = logging.getLogger(__name__)

FILES_ENDPOINT = "/api/media/files"
FOLDERS_ENDPOINT = "/api/media/folders"

FILE_RESOURCE = "文件"
FOLDER_RESOURCE = "文件夹"

# 404 时按资源类型给出模块错误码
NOT_FOUND_CODES = {
    FILE_RESOURCE: ErrorCode.MEDIA_FILE_NOT_FOUND,
    FOLDER_RESOURCE: ErrorCode.MEDIA_FOLDER_NOT_FOUND,
}

M = TypeVar("M", bound=BaseModel)


def _error_detail(response: httpx.Response) -> tuple[Optional[str], Any]:
    """从错误响应中提取 (message, errors)，兼容 {message, errors} / {detail} / {code, message, data}"""
    try:
        payload = response.json()
    except ValueError:
        text = response.text.strip()
        return (text[:200] or None), None

    if not isinstance(payload, dict):
        return None, None

    message = payload.get("message")
    detail = payload.get("detail")
    errors = payload.get("errors")
    if errors is None and isinstance(payload.get("data"), dict):
        errors = payload["data"].get("errors")

    if isinstance(detail, str) and not message:
        message = detail
    elif isinstance(detail, list) and errors is None:
        errors = detail

    return message, errors


def _as_payload(data: Union[BaseModel, Dict[str, Any]], schema: Type[M]) -> Dict[str, Any]:
    """
    只保留显式提供的字段

    字典先按表单模型校验，缺少必填字段或出现未知字段时不发请求

    Raises:
        ValidationException: 字典不符合表单模型
    """
    if isinstance(data, dict):
        try:
            data = schema.model_validate(data)
        except ValidationError as e:
            raise ValidationException(
                f"{schema.__name__} 参数验证失败",
                errors=e.errors(include_url=False, include_context=False),
            ) from e
    return data.model_dump(mode="json", exclude_unset=True)


class MediaApiClient:
    """
    媒体服务客户端

    每个应用上下文显式构造一个实例；配置了 token 时每个请求都带上 Bearer 认证头。

    Usage:
        async with MediaApiClient.from_settings() as api:
            folders = await api.folders.list()
            media = await api.files.upload(b"...", "cover.png", folder_id=folders[0].id)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self.files = MediaFileService(self)
        self.folders = MediaFolderService(self)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "MediaApiClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.api_base_url,
            token=settings.api_token,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self) -> "MediaApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def request(
        self,
        method: str,
        url: str,
        *,
        resource: str = "资源",
        resource_id: Any = None,
        **kwargs,
    ) -> Any:
        """
        发送请求并返回解析后的 JSON（无响应体时返回 None）

        Raises:
            ValidationException: 400 / 422
            AuthException: 401
            PermissionException: 403
            NotFoundException: 404
            TransportException: 网络错误、超时、5xx
            AppException: 其他 4xx
        """
        logger.debug(f"媒体接口请求: {method} {url}")
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"媒体接口请求超时: {method} {url}")
            raise TransportException(f"请求超时: {method} {url}", code=ErrorCode.REQUEST_TIMEOUT) from e
        except httpx.TransportError as e:
            logger.warning(f"媒体接口网络错误: {method} {url}: {e}")
            raise TransportException(f"网络错误: {e}", code=ErrorCode.NETWORK_ERROR) from e

        if response.is_error:
            exc = self._error_from_response(response, resource, resource_id)
            logger.warning(f"媒体接口返回错误: {method} {url} -> {response.status_code} {exc.message}")
            raise exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportException("响应不是合法的 JSON", status_code=response.status_code) from e

    @staticmethod
    def _error_from_response(response: httpx.Response, resource: str, resource_id: Any) -> AppException:
        status_code = response.status_code
        message, errors = _error_detail(response)

        if status_code in (400, 422):
            return ValidationException(message or "参数验证失败", errors=errors)
        if status_code == 401:
            return AuthException(message=message)
        if status_code == 403:
            return PermissionException(message or "没有权限执行此操作")
        if status_code == 404:
            return NotFoundException(
                resource, resource_id, code=NOT_FOUND_CODES.get(resource, ErrorCode.RESOURCE_NOT_FOUND)
            )
        if status_code == 409:
            return AppException(ErrorCode.RESOURCE_CONFLICT, message, data={"errors": errors} if errors else None)
        if status_code >= 500:
            return TransportException(message or f"媒体服务错误 ({status_code})", status_code=status_code)
        return AppException(ErrorCode.OPERATION_FAILED, message, data={"status_code": status_code})

    @staticmethod
    def unwrap_one(payload: Any, model: Type[M]) -> M:
        """解析 {data: T}"""
        try:
            return SingleResponse[model].model_validate(payload).data
        except ValidationError as e:
            raise TransportException(f"响应格式不正确: {e.error_count()} 处错误") from e

    @staticmethod
    def unwrap_many(payload: Any, model: Type[M]) -> List[M]:
        """解析 {data: [T]}，保持服务端顺序"""
        try:
            return ListResponse[model].model_validate(payload).data
        except ValidationError as e:
            raise TransportException(f"响应格式不正确: {e.error_count()} 处错误") from e


class MediaFileService:
    """媒体文件接口"""

    def __init__(self, api: MediaApiClient):
        self.api = api

    async def list(self, folder_id: Optional[int] = None) -> List[MediaFile]:
        """获取文件列表，folder_id 为空时不过滤"""
        params = {"folder_id": folder_id} if folder_id is not None else None
        payload = await self.api.request("GET", FILES_ENDPOINT, params=params)
        return self.api.unwrap_many(payload, MediaFile)

    async def get(self, file_id: int) -> MediaFile:
        payload = await self.api.request(
            "GET", f"{FILES_ENDPOINT}/{file_id}", resource=FILE_RESOURCE, resource_id=file_id
        )
        return self.api.unwrap_one(payload, MediaFile)

    async def upload(
        self,
        content: Union[bytes, BinaryIO],
        filename: str,
        folder_id: Optional[int] = None,
        description: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> MediaFile:
        """
        上传文件（multipart/form-data）

        文件内容原样透传；folder_id 为空时上传到未归档区，description 为空时不提交
        """
        if not content_type:
            content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

        form: Dict[str, str] = {}
        if folder_id is not None:
            form["folder_id"] = str(folder_id)
        if description:
            form["description"] = description

        payload = await self.api.request(
            "POST",
            FILES_ENDPOINT,
            files={"file": (filename, content, content_type)},
            data=form,
            resource=FOLDER_RESOURCE if folder_id is not None else FILE_RESOURCE,
            resource_id=folder_id,
        )
        media = self.api.unwrap_one(payload, MediaFile)
        logger.info(f"媒体文件已上传: {filename} -> 文件夹 {folder_id}")
        return media

    async def update(self, file_id: int, data: Union[MediaFileUpdate, Dict[str, Any]]) -> MediaFile:
        """部分更新：只提交显式设置的字段"""
        payload = await self.api.request(
            "PUT",
            f"{FILES_ENDPOINT}/{file_id}",
            json=_as_payload(data, MediaFileUpdate),
            resource=FILE_RESOURCE,
            resource_id=file_id,
        )
        return self.api.unwrap_one(payload, MediaFile)

    async def delete(self, file_id: int) -> None:
        await self.api.request(
            "DELETE", f"{FILES_ENDPOINT}/{file_id}", resource=FILE_RESOURCE, resource_id=file_id
        )
        logger.info(f"媒体文件已删除: {file_id}")


class MediaFolderService:
    """媒体文件夹接口"""

    def __init__(self, api: MediaApiClient):
        self.api = api

    async def list(self, parent_id: Optional[int] = None) -> List[MediaFolder]:
        """获取文件夹列表，parent_id 为空时不过滤"""
        params = {"parent_id": parent_id} if parent_id is not None else None
        payload = await self.api.request("GET", FOLDERS_ENDPOINT, params=params)
        return self.api.unwrap_many(payload, MediaFolder)

    async def get(self, folder_id: int) -> MediaFolder:
        payload = await self.api.request(
            "GET", f"{FOLDERS_ENDPOINT}/{folder_id}", resource=FOLDER_RESOURCE, resource_id=folder_id
        )
        return self.api.unwrap_one(payload, MediaFolder)

    async def create(self, data: Union[MediaFolderCreate, Dict[str, Any]]) -> MediaFolder:
        payload = await self.api.request(
            "POST", FOLDERS_ENDPOINT, json=_as_payload(data, MediaFolderCreate), resource=FOLDER_RESOURCE
        )
        folder = self.api.unwrap_one(payload, MediaFolder)
        logger.info(f"媒体文件夹已创建: {folder.name} (ID: {folder.id})")
        return folder

    async def update(self, folder_id: int, data: Union[MediaFolderUpdate, Dict[str, Any]]) -> MediaFolder:
        """部分更新：只提交显式设置的字段"""
        payload = await self.api.request(
            "PUT",
            f"{FOLDERS_ENDPOINT}/{folder_id}",
            json=_as_payload(data, MediaFolderUpdate),
            resource=FOLDER_RESOURCE,
            resource_id=folder_id,
        )
        return self.api.unwrap_one(payload, MediaFolder)

    async def delete(self, folder_id: int) -> None:
        """删除文件夹，子文件夹与文件如何处理由服务端决定"""
        await self.api.request(
            "DELETE", f"{FOLDERS_ENDPOINT}/{folder_id}", resource=FOLDER_RESOURCE, resource_id=folder_id
        )
        logger.info(f"媒体文件夹已删除: {folder_id}")

    async def tree(self) -> List[FolderTreeNode]:
        """获取文件夹列表并整理成树"""
        return build_folder_tree(await self.list())
