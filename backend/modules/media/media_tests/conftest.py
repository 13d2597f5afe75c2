"""
媒体模块测试配置
提供内存版媒体服务（httpx.MockTransport）和客户端夹具
"""

import json
import re
from typing import Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

from modules.media.media_client import MediaApiClient


class FakeMediaServer:
    """
    内存版媒体服务

    按 /api/media/{files|folders}[/{id}] 响应，返回 {data: ...} 信封；
    fail_with 设置后所有请求都返回该状态码
    """

    def __init__(self):
        self.folders: Dict[int, dict] = {}
        self.files: Dict[int, dict] = {}
        self.requests: List[httpx.Request] = []
        self.fail_with: Optional[int] = None
        self._next_id = 1

    def _new_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    def add_folder(self, name: str, parent_id: Optional[int] = None, **extra) -> dict:
        folder = {"id": self._new_id(), "name": name, "parent_id": parent_id, "description": None, **extra}
        self.folders[folder["id"]] = folder
        return folder

    def add_file(self, name: str, folder_id: Optional[int] = None, **extra) -> dict:
        media = {
            "id": self._new_id(),
            "name": name,
            "filename": name,
            "path": f"media/{name}",
            "mime_type": "image/png",
            "size": 1024,
            "folder_id": folder_id,
            "description": None,
            **extra,
        }
        self.files[media["id"]] = media
        return media

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return httpx.Response(self.fail_with, json={"message": "媒体服务异常"})

        parts = request.url.path.strip("/").split("/")
        if parts[:2] != ["api", "media"] or len(parts) not in (3, 4) or parts[2] not in ("files", "folders"):
            return httpx.Response(404, json={"message": "Not Found"})

        kind = parts[2]
        store = self.files if kind == "files" else self.folders
        if len(parts) == 3:
            if request.method == "GET":
                return self._list(request, kind, store)
            if request.method == "POST":
                return self._upload(request) if kind == "files" else self._create_folder(request)
            return httpx.Response(405)

        item_id = int(parts[3])
        if item_id not in store:
            return httpx.Response(404, json={"message": "Not Found"})
        if request.method == "GET":
            return httpx.Response(200, json={"data": store[item_id]})
        if request.method == "PUT":
            store[item_id].update(json.loads(request.content))
            return httpx.Response(200, json={"data": store[item_id]})
        if request.method == "DELETE":
            del store[item_id]
            return httpx.Response(204)
        return httpx.Response(405)

    def _list(self, request: httpx.Request, kind: str, store: Dict[int, dict]) -> httpx.Response:
        key = "folder_id" if kind == "files" else "parent_id"
        items = list(store.values())
        if key in request.url.params:
            wanted = int(request.url.params[key])
            items = [i for i in items if i[key] == wanted]
        return httpx.Response(200, json={"data": items})

    def _create_folder(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if not body.get("name"):
            return httpx.Response(422, json={
                "message": "The name field is required.",
                "errors": {"name": ["The name field is required."]},
            })
        parent_id = body.get("parent_id")
        if parent_id is not None and parent_id not in self.folders:
            return httpx.Response(422, json={
                "message": "The selected parent id is invalid.",
                "errors": {"parent_id": ["The selected parent id is invalid."]},
            })
        folder = self.add_folder(**body)
        return httpx.Response(201, json={"data": folder})

    def _upload(self, request: httpx.Request) -> httpx.Response:
        body = request.content
        match = re.search(rb'name="file"; filename="([^"]+)"\r\nContent-Type: ([^\r]+)\r\n\r\n', body)
        if not match:
            return httpx.Response(422, json={"message": "The file field is required."})
        filename = match.group(1).decode()
        fields = {
            name.decode(): value.decode()
            for name, value in re.findall(rb'name="(folder_id|description)"\r\n\r\n(.*?)\r\n--', body, re.S)
        }
        folder_id = int(fields["folder_id"]) if "folder_id" in fields else None
        if folder_id is not None and folder_id not in self.folders:
            return httpx.Response(404, json={"message": "Folder not found"})
        media = self.add_file(
            filename,
            folder_id=folder_id,
            description=fields.get("description"),
            mime_type=match.group(2).decode(),
            size=len(body[match.end():].split(b"\r\n--", 1)[0]),
        )
        return httpx.Response(201, json={"data": media})


@pytest.fixture
def media_server() -> FakeMediaServer:
    return FakeMediaServer()


@pytest_asyncio.fixture
async def media_api(media_server, test_settings):
    """连接内存媒体服务的客户端"""
    api = MediaApiClient.from_settings(test_settings, transport=httpx.MockTransport(media_server.handler))
    yield api
    await api.close()
