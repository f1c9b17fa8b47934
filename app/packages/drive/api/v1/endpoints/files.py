"""文件与文件夹元数据路由。

文件内容由客户端直接上传到 CDN，这里只负责登记元数据、列出目录以及切换星标/回收站状态。
请求体以原始 JSON 读取，保证“认证 → userId 核对 → 字段校验”的顺序不被框架的
自动校验打乱。
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.files import (
    FileEntryResponse,
    FileListResponse,
    FolderCreateResponse,
)
from app.packages.drive.core.dependencies import get_current_identity, get_db
from app.packages.drive.core.exceptions import InvalidInputError
from app.packages.drive.services.file_service import file_service

router = APIRouter(tags=["files"])


async def read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise InvalidInputError("Request body must be valid JSON") from exc


@router.post("/folders/create", response_model=FolderCreateResponse)
def create_folder(
    owner_id: str = Depends(get_current_identity),
    payload: Any = Depends(read_json_body),
    db: Session = Depends(get_db),
):
    return file_service.create_folder(db, owner_id=owner_id, payload=payload)


@router.post("/upload", response_model=FileEntryResponse)
def create_file_record(
    owner_id: str = Depends(get_current_identity),
    payload: Any = Depends(read_json_body),
    db: Session = Depends(get_db),
):
    """登记一条已上传到 CDN 的文件记录。"""
    return file_service.create_file(db, owner_id=owner_id, payload=payload)


@router.get("/files", response_model=FileListResponse)
def list_files(
    owner_id: str = Depends(get_current_identity),
    parent_id: Optional[str] = Query(None, alias="parentId"),
    include_trash: bool = Query(False, alias="includeTrash"),
    starred: bool = Query(False),
    db: Session = Depends(get_db),
):
    return file_service.list_entries(
        db,
        owner_id=owner_id,
        parent_id=parent_id,
        include_trash=include_trash,
        starred_only=starred,
    )


@router.patch("/files/{file_id}/star", response_model=FileEntryResponse)
def toggle_star(
    file_id: str,
    owner_id: str = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return file_service.toggle_star(db, owner_id=owner_id, entry_id=file_id)


@router.patch("/files/{file_id}/trash", response_model=FileEntryResponse)
def toggle_trash(
    file_id: str,
    owner_id: str = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return file_service.toggle_trash(db, owner_id=owner_id, entry_id=file_id)
