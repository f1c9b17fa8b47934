"""模型包初始化，便于统一导入 ORM 实体并触发模型注册。"""

from app.packages.drive.models.file_entry import FileEntry

__all__ = ["FileEntry"]
