"""响应封装：构建系统统一的成功返回结构。"""

from typing import Any

from fastapi import status


def create_response(msg: str, code: int = status.HTTP_200_OK, **payload: Any) -> dict[str, Any]:
    """组合出 ``{"success": true, "msg", "code", ...}`` 结构，业务数据以关键字参数平铺。"""
    return {"success": True, "msg": msg, "code": code, **payload}
