"""文件管理 - 文件/文件夹 元数据接口的请求/响应模型。

请求模型拒绝未声明的字段；字段名与前端保持一致（camelCase）。
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from app.packages.drive.models.file_entry import FOLDER_TYPE, NAME_MAX_LENGTH


def _require_text(value: str, label: str) -> str:
    if not value.strip():
        raise ValueError(f"{label} is required")
    return value


def _check_length(value: str, label: str) -> str:
    # 与数据库列宽一致，超长值在入库前拒绝
    if len(value) > NAME_MAX_LENGTH:
        raise ValueError(f"{label} must be at most {NAME_MAX_LENGTH} characters")
    return value


def _check_entry_name(value: str, label: str) -> str:
    _require_text(value, label)
    if "/" in value:
        raise ValueError(f"{label} must not contain '/'")
    return _check_length(value, label)


class _RequestBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    userId: Optional[StrictStr] = None
    parentId: Optional[StrictStr] = None

    @field_validator("parentId")
    @classmethod
    def _blank_parent_is_root(cls, value: Optional[str]) -> Optional[str]:
        # 空字符串与缺省一样表示根目录
        return value or None


class FolderCreateBody(_RequestBody):
    name: StrictStr

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        return _check_entry_name(value.strip(), "Folder name")


class FileCreateBody(_RequestBody):
    name: StrictStr
    fileUrl: StrictStr
    thumbnailUrl: Optional[StrictStr] = None
    size: StrictInt = Field(..., ge=0)
    type: StrictStr

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _check_entry_name(value, "File name")

    @field_validator("fileUrl")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return _require_text(value, "File URL")

    @field_validator("type")
    @classmethod
    def _validate_type(cls, value: str) -> str:
        _require_text(value, "File type")
        if value == FOLDER_TYPE:
            raise ValueError("File type 'folder' is reserved for folders")
        return _check_length(value, "File type")


class FileEntryData(BaseModel):
    id: str
    name: str
    path: str
    size: int
    type: str
    fileUrl: str
    thumbnailUrl: Optional[str] = None
    userId: str
    parentId: Optional[str] = None
    isFolder: bool
    isStarred: bool
    isTrash: bool
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class _SuccessEnvelope(BaseModel):
    success: bool = True
    msg: str
    code: int


class FolderCreateResponse(_SuccessEnvelope):
    folder: FileEntryData


class FileEntryResponse(_SuccessEnvelope):
    file: FileEntryData


class FileListResponse(_SuccessEnvelope):
    files: list[FileEntryData]
