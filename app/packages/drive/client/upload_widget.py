"""上传组件：在客户端完成本地预检、获取临时上传凭证、直传 CDN 并回调结果。

组件本身不抛出上传异常：失败信息写入 ``error`` 属性（相当于界面上的错误提示），
只有成功时才会调用 ``on_success``。
"""

from __future__ import annotations

import io
import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Optional

import httpx

from app.packages.drive.core.config import Settings, get_settings
from app.packages.drive.core.logger import logger

ALLOWED_MIME_TYPES = frozenset(
    {
        # images
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        # pdf
        "application/pdf",
        # csv
        "text/csv",
        "application/vnd.ms-excel",
        "application/csv",
    }
)
THUMBNAIL_TRANSFORM = "tr=w-300,h-300,cm-extract"
UPLOAD_FAILED_MESSAGE = "Upload failed. Please try again."

UploadResult = Dict[str, Optional[str]]


class UploadRejected(Exception):
    """本地预检未通过（类型不允许或体积超限），不会发起任何网络请求。"""


class UploadFailed(Exception):
    """凭证或 CDN 响应不完整。"""


@dataclass
class LocalFile:
    name: str
    content_type: str
    size: int
    stream: BinaryIO

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "LocalFile":
        file_path = Path(path)
        content_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            name=file_path.name,
            content_type=content_type or "application/octet-stream",
            size=file_path.stat().st_size,
            stream=file_path.open("rb"),
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: str) -> "LocalFile":
        return cls(name=name, content_type=content_type, size=len(data), stream=io.BytesIO(data))

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "LocalFile":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class _ProgressReader:
    """包装文件对象，在 httpx 按块读取请求体时上报已发送的百分比。"""

    def __init__(self, stream: BinaryIO, total: int, callback: Callable[[int], None]) -> None:
        self._stream = stream
        self._total = total
        self._callback = callback
        self._loaded = 0
        self._finished = False

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        if chunk and self._total > 0:
            self._loaded += len(chunk)
            self._callback(round(min(self._loaded, self._total) / self._total * 100))
        elif not chunk and self._total == 0 and not self._finished:
            # 空文件没有数据块，读到结尾时直接报告完成
            self._finished = True
            self._callback(100)
        return chunk

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        position = self._stream.seek(offset, whence)
        if position == 0:
            self._loaded = 0
        return position

    def tell(self) -> int:
        return self._stream.tell()


class UploadWidget:
    def __init__(
        self,
        client: httpx.Client,
        *,
        on_success: Callable[[UploadResult], None],
        on_progress: Optional[Callable[[int], None]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.client = client
        self.on_success = on_success
        self.on_progress = on_progress
        self.settings = settings or get_settings()
        self.uploading = False
        self.error: Optional[str] = None

    def validate_file(self, file: LocalFile) -> None:
        if file.content_type not in ALLOWED_MIME_TYPES:
            raise UploadRejected("Only image, PDF or CSV files are allowed")
        if file.size > self.settings.upload_max_bytes:
            limit_mb = self.settings.upload_max_bytes // (1024 * 1024)
            raise UploadRejected(f"File size must be less than {limit_mb} MB")

    def handle_file(self, file: Optional[LocalFile]) -> Optional[UploadResult]:
        """处理一次文件选择；成功返回 ``{url, thumbnailUrl}``，否则返回 ``None`` 并设置 ``error``。"""
        if file is None:
            return None

        self.error = None
        try:
            self.validate_file(file)
        except UploadRejected as exc:
            self.error = str(exc)
            return None

        self.uploading = True
        try:
            credentials = self._fetch_credentials()
            payload = self._upload(file, credentials)
        except (httpx.HTTPError, UploadFailed, ValueError):
            logger.warning("Upload of %s failed", file.name, exc_info=True)
            self.error = UPLOAD_FAILED_MESSAGE
            return None
        finally:
            self.uploading = False

        result: UploadResult = {
            "url": payload["url"],
            "thumbnailUrl": self.thumbnail_url_for(payload["url"], file.content_type),
        }
        self.on_success(result)
        return result

    @staticmethod
    def thumbnail_url_for(url: str, content_type: str) -> Optional[str]:
        if not content_type.startswith("image/"):
            return None
        return f"{url}?{THUMBNAIL_TRANSFORM}"

    def _fetch_credentials(self) -> Dict[str, Any]:
        response = self.client.get(self.settings.upload_auth_url)
        response.raise_for_status()
        credentials = response.json()
        if not isinstance(credentials, dict) or any(
            credentials.get(key) in (None, "") for key in ("signature", "token", "expire")
        ):
            raise UploadFailed("Upload authentication failed")
        return credentials

    def _upload(self, file: LocalFile, credentials: Dict[str, Any]) -> Dict[str, Any]:
        body: Any = file.stream
        if self.on_progress is not None:
            body = _ProgressReader(file.stream, file.size, self.on_progress)
        response = self.client.post(
            self.settings.imagekit_upload_url,
            data={
                "fileName": file.name,
                "publicKey": self.settings.imagekit_public_key,
                "signature": str(credentials["signature"]),
                "expire": str(credentials["expire"]),
                "token": str(credentials["token"]),
            },
            files={"file": (file.name, body, file.content_type)},
            timeout=self.settings.upload_timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict) or not payload.get("url"):
            raise UploadFailed("Upload did not return a URL")
        return payload


def register_upload(
    api: httpx.Client,
    result: UploadResult,
    file: LocalFile,
    *,
    parent_id: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """把上传结果登记为文件记录（``POST {api_prefix}/upload``），返回服务端保存的条目。"""
    settings = settings or get_settings()
    response = api.post(
        f"{settings.api_prefix}/upload",
        json={
            "name": file.name,
            "fileUrl": result["url"],
            "thumbnailUrl": result.get("thumbnailUrl"),
            "size": file.size,
            "type": file.content_type,
            "parentId": parent_id,
        },
    )
    response.raise_for_status()
    return response.json()["file"]
