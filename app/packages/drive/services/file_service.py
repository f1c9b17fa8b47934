"""文件元数据服务：文件夹/文件记录的创建、列表与状态切换。

创建流程严格按以下顺序执行，任一步失败即终止，不写入任何记录：
1. 请求体中的 userId（若提供）必须与当前身份一致；
2. 字段校验；
3. 父目录解析（存在、归属当前用户、且为文件夹）；
4. 同级重名检查；
5. 写入记录（数据库唯一约束兜底并发重名）。
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.files import FileCreateBody, FolderCreateBody
from app.packages.drive.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from app.packages.drive.core.logger import logger
from app.packages.drive.core.responses import create_response
from app.packages.drive.core.timezone import format_datetime
from app.packages.drive.crud.file_entry import file_entry_crud, parent_key_for
from app.packages.drive.models.file_entry import FOLDER_TYPE, FileEntry
from app.packages.drive.utils.path_utils import ROOT_PATH, join_path

BodyT = TypeVar("BodyT", bound=BaseModel)


class FileService:
    # ----------------------------
    # 创建
    # ----------------------------
    def create_folder(self, db: Session, *, owner_id: str, payload: Any) -> Dict[str, Any]:
        self.ensure_owner_matches(payload, owner_id)
        body = self.parse_body(FolderCreateBody, payload, fallback="Folder name is required")

        parent_path, parent_id = self.resolve_parent(db, owner_id=owner_id, parent_id=body.parentId)
        self.ensure_name_available(db, owner_id=owner_id, parent_id=parent_id, name=body.name)

        folder = self._write_entry(
            db,
            {
                "name": body.name,
                "path": join_path(parent_path, body.name),
                "size": 0,
                "type": FOLDER_TYPE,
                "file_url": "",
                "thumbnail_url": None,
                "user_id": owner_id,
                "parent_id": parent_id,
                "is_folder": True,
                "is_starred": False,
                "is_trash": False,
            },
        )
        logger.info("Folder created id=%s path=%s owner=%s", folder.id, folder.path, owner_id)
        return create_response("Folder created", folder=self._serialize_entry(folder))

    def create_file(self, db: Session, *, owner_id: str, payload: Any) -> Dict[str, Any]:
        self.ensure_owner_matches(payload, owner_id)
        body = self.parse_body(FileCreateBody, payload, fallback="Missing required file fields")

        parent_path, parent_id = self.resolve_parent(db, owner_id=owner_id, parent_id=body.parentId)
        self.ensure_name_available(db, owner_id=owner_id, parent_id=parent_id, name=body.name)

        entry = self._write_entry(
            db,
            {
                "name": body.name,
                "path": join_path(parent_path, body.name),
                "size": body.size,
                "type": body.type,
                "file_url": body.fileUrl,
                "thumbnail_url": body.thumbnailUrl,
                "user_id": owner_id,
                "parent_id": parent_id,
                "is_folder": False,
                "is_starred": False,
                "is_trash": False,
            },
        )
        logger.info("File record created id=%s path=%s size=%s owner=%s", entry.id, entry.path, entry.size, owner_id)
        return create_response("File saved", file=self._serialize_entry(entry))

    # ----------------------------
    # 查询与状态切换
    # ----------------------------
    def list_entries(
        self,
        db: Session,
        *,
        owner_id: str,
        parent_id: Optional[str] = None,
        include_trash: bool = False,
        starred_only: bool = False,
    ) -> Dict[str, Any]:
        _, parent_id = self.resolve_parent(db, owner_id=owner_id, parent_id=parent_id)
        items = file_entry_crud.list_children(
            db,
            user_id=owner_id,
            parent_id=parent_id,
            include_trash=include_trash,
            starred_only=starred_only,
        )
        return create_response("OK", files=[self._serialize_entry(item) for item in items])

    def toggle_star(self, db: Session, *, owner_id: str, entry_id: str) -> Dict[str, Any]:
        entry = self._get_owned_entry(db, owner_id=owner_id, entry_id=entry_id)
        entry.is_starred = not entry.is_starred
        entry = file_entry_crud.save(db, entry)
        return create_response("Star updated", file=self._serialize_entry(entry))

    def toggle_trash(self, db: Session, *, owner_id: str, entry_id: str) -> Dict[str, Any]:
        entry = self._get_owned_entry(db, owner_id=owner_id, entry_id=entry_id)
        entry.is_trash = not entry.is_trash
        entry = file_entry_crud.save(db, entry)
        logger.info("Entry %s %s trash", entry.id, "moved to" if entry.is_trash else "restored from")
        return create_response("Trash updated", file=self._serialize_entry(entry))

    # ----------------------------
    # 校验步骤
    # ----------------------------
    @staticmethod
    def ensure_owner_matches(payload: Any, owner_id: str) -> None:
        """请求体里的 userId 只用于核对，不作为归属来源。"""
        if not isinstance(payload, dict):
            raise InvalidInputError("Request body must be a JSON object")
        claimed = payload.get("userId")
        if claimed and claimed != owner_id:
            raise ForbiddenError()

    @staticmethod
    def parse_body(model: Type[BodyT], payload: Dict[str, Any], *, fallback: str) -> BodyT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            errors = exc.errors(include_url=False, include_input=False, include_context=False)
            first = errors[0] if errors else {}
            # 自定义校验器给出的是可读信息，其余（缺字段/类型不符）使用统一提示
            message = fallback
            if first.get("type") == "value_error":
                message = str(first.get("msg", "")).removeprefix("Value error, ") or fallback
            details = [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in errors]
            raise InvalidInputError(message, data=details) from exc

    def resolve_parent(
        self, db: Session, *, owner_id: str, parent_id: Optional[str]
    ) -> Tuple[str, Optional[str]]:
        """返回 (父路径, 规范化后的 parent_id)。

        不存在 → 404；属于其他用户 → 403；不是文件夹 → 400。两个创建入口使用同一策略。
        """
        if not parent_id:
            return ROOT_PATH, None

        parent = file_entry_crud.get(db, parent_id)
        if parent is None:
            raise NotFoundError("Parent folder not found")
        if parent.user_id != owner_id:
            raise ForbiddenError("Cannot use a folder you don't own")
        if not parent.is_folder:
            raise InvalidInputError("Parent is not a folder")
        return parent.path, parent.id

    def ensure_name_available(
        self, db: Session, *, owner_id: str, parent_id: Optional[str], name: str
    ) -> None:
        existing = file_entry_crud.find_sibling(db, user_id=owner_id, parent_id=parent_id, name=name)
        if existing is not None:
            raise ConflictError()

    # ----------------------------
    # 写入与序列化
    # ----------------------------
    def _write_entry(self, db: Session, values: Dict[str, Any]) -> FileEntry:
        values = {**values, "parent_key": parent_key_for(values.get("parent_id"))}
        try:
            return file_entry_crud.create(db, values)
        except IntegrityError:
            # 预检查与写入之间可能被并发请求抢先；以唯一约束结果为准
            sibling = file_entry_crud.find_sibling(
                db, user_id=values["user_id"], parent_id=values["parent_id"], name=values["name"]
            )
            if sibling is not None:
                logger.info("Concurrent create lost the race for %s", values["name"])
                raise ConflictError()
            raise

    @staticmethod
    def _get_owned_entry(db: Session, *, owner_id: str, entry_id: str) -> FileEntry:
        entry = file_entry_crud.get(db, entry_id)
        if entry is None:
            raise NotFoundError("File not found")
        if entry.user_id != owner_id:
            raise ForbiddenError()
        return entry

    @staticmethod
    def _serialize_entry(entry: FileEntry) -> Dict[str, Any]:
        return {
            "id": entry.id,
            "name": entry.name,
            "path": entry.path,
            "size": entry.size,
            "type": entry.type,
            "fileUrl": entry.file_url,
            "thumbnailUrl": entry.thumbnail_url,
            "userId": entry.user_id,
            "parentId": entry.parent_id,
            "isFolder": entry.is_folder,
            "isStarred": entry.is_starred,
            "isTrash": entry.is_trash,
            "createdAt": format_datetime(entry.created_at),
            "updatedAt": format_datetime(entry.updated_at),
        }


file_service = FileService()
