"""依赖注入模块：封装数据库会话与当前身份解析，供各路由通过 ``Depends`` 注入。"""

from collections.abc import Generator
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.packages.drive.core.exceptions import UnauthenticatedError
from app.packages.drive.core.security import decode_token, extract_owner_id
from app.packages.drive.db import session as db_session

security_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """生成一个数据库会话，并在请求结束后自动关闭。"""
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> str:
    """解析 ``Authorization: Bearer`` 令牌并返回当前用户 ID，缺失或非法时抛出 401。

    路由只依赖本函数的返回值，测试或其它身份源可通过 ``dependency_overrides`` 替换。
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthenticatedError()

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise UnauthenticatedError()

    owner_id = extract_owner_id(payload)
    if owner_id is None:
        raise UnauthenticatedError()
    return owner_id
