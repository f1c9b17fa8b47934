"""文件与文件夹共用的元数据模型（表 ``files``）。

存储规则：
- path：以 '/' 开头的物化绝对路径，由父目录路径与 name 拼接得到；
- is_folder：目录为 True，此时 type='folder'、size=0、file_url=''；
- parent_id：父目录 ID，根目录下的条目为 NULL；
- parent_key：parent_id 的规范化副本，根目录记为空串，用于同级重名约束
  （NULL 在唯一约束中互不相等，无法直接约束根目录下的重名）。
"""

import uuid
from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.drive.models.base import Base, TimestampMixin

ROOT_PARENT_KEY = ""
FOLDER_TYPE = "folder"
NAME_MAX_LENGTH = 255


def _new_id() -> str:
    return str(uuid.uuid4())


class FileEntry(TimestampMixin, Base):
    __tablename__ = "files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    type: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    file_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    parent_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("files.id", ondelete="CASCADE"), nullable=True, index=True
    )
    parent_key: Mapped[str] = mapped_column(String(36), nullable=False, default=ROOT_PARENT_KEY)

    is_folder: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_starred: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_trash: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("user_id", "parent_key", "name", name="uq_files_owner_parent_name"),
    )

    def __repr__(self) -> str:
        return f"<FileEntry id={self.id} path={self.path!r} folder={self.is_folder}>"
