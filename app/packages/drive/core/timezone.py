"""时区工具方法：按配置时区输出时间。"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from app.packages.drive.core.config import get_settings


def to_local(value: Optional[datetime]) -> Optional[datetime]:
    """将 ``datetime`` 转换为配置时区；SQLite 读出的无时区时间按 UTC 处理。"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(get_settings().timezone_info)


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """将时间格式化为 ISO-8601 字符串。"""
    localized = to_local(value)
    return None if localized is None else localized.isoformat()
