"""
媒体管理数据验证模型
文件夹与文件的结构定义，以及远端接口的响应信封
"""

from datetime import datetime
from typing import Optional, List, Generic, TypeVar
from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


# ============ 文件夹相关 ============

class MediaFolder(BaseModel):
    """
    媒体文件夹

    parent / children / files 是服务端按需填充的冗余数据，
    归属关系只以 parent_id 为准
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    path: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    parent: Optional["MediaFolder"] = None
    children: Optional[List["MediaFolder"]] = None
    files: Optional[List["MediaFile"]] = None


class MediaFolderCreate(BaseModel):
    """创建文件夹"""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="文件夹名称")
    description: Optional[str] = Field(None, description="描述")
    parent_id: Optional[int] = Field(None, description="父文件夹ID，为空则在根目录")
    path: Optional[str] = Field(None, description="物化路径")


class MediaFolderUpdate(BaseModel):
    """更新文件夹（只提交显式设置的字段）"""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, description="文件夹名称")
    description: Optional[str] = Field(None, description="描述")
    parent_id: Optional[int] = Field(None, description="父文件夹ID，显式传 None 表示移动到根目录")
    path: Optional[str] = Field(None, description="物化路径")


class FolderTreeNode(BaseModel):
    """文件夹树节点"""
    id: int
    name: str
    path: Optional[str] = None
    children: List["FolderTreeNode"] = []


class BreadcrumbItem(BaseModel):
    """面包屑导航项"""
    id: Optional[int]
    name: str
    path: Optional[str] = None


# ============ 文件相关 ============

class MediaFile(BaseModel):
    """
    媒体文件

    folder 是冗余数据，修改归属必须通过更新 folder_id
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    name: str
    filename: str
    path: str
    mime_type: str
    size: int = Field(..., ge=0)
    folder_id: Optional[int] = None
    url: Optional[str] = None
    download_url: Optional[str] = None
    description: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    folder: Optional[MediaFolder] = None

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class MediaFileUpdate(BaseModel):
    """更新文件（只提交显式设置的字段）"""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, description="文件名")
    folder_id: Optional[int] = Field(None, description="目标文件夹ID，显式传 None 表示移出文件夹")
    description: Optional[str] = Field(None, description="文件描述")


# ============ 响应信封 ============

class SingleResponse(BaseModel, Generic[T]):
    """单个实体响应 {data: T}"""
    data: T


class ListResponse(BaseModel, Generic[T]):
    """列表响应 {data: [T]}"""
    data: List[T]


MediaFolder.model_rebuild()
MediaFile.model_rebuild()
FolderTreeNode.model_rebuild()
