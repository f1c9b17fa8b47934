"""FileEntry CRUD。"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from app.packages.drive.crud.base import CRUDBase
from app.packages.drive.models.file_entry import ROOT_PARENT_KEY, FileEntry


def parent_key_for(parent_id: Optional[str]) -> str:
    """把“无父目录”的各种表示统一成同一个规范值。"""
    return parent_id or ROOT_PARENT_KEY


class CRUDFileEntry(CRUDBase[FileEntry]):
    def find_sibling(
        self, db: Session, *, user_id: str, parent_id: Optional[str], name: str
    ) -> FileEntry | None:
        return (
            self.query(db)
            .filter(FileEntry.user_id == user_id)
            .filter(FileEntry.parent_key == parent_key_for(parent_id))
            .filter(FileEntry.name == name)
            .first()
        )

    def list_children(
        self,
        db: Session,
        *,
        user_id: str,
        parent_id: Optional[str],
        include_trash: bool = False,
        starred_only: bool = False,
    ) -> List[FileEntry]:
        query = (
            self.query(db)
            .filter(FileEntry.user_id == user_id)
            .filter(FileEntry.parent_key == parent_key_for(parent_id))
        )
        if not include_trash:
            query = query.filter(FileEntry.is_trash.is_(False))
        if starred_only:
            query = query.filter(FileEntry.is_starred.is_(True))
        # 目录优先，其次按名称排序
        return query.order_by(FileEntry.is_folder.desc(), FileEntry.name.asc()).all()


file_entry_crud = CRUDFileEntry(FileEntry)
