"""安全模块：校验外部身份提供方签发的会话令牌（JWT），并解析出当前用户标识。

本服务不签发正式令牌，也不维护会话状态；``create_access_token`` 仅用于
本地联调与测试，签名参数与校验参数共用同一套配置。
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from .config import get_settings
from .logger import logger


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """校验签名、过期时间以及（若配置）签发方/受众，合法时返回载荷，否则返回 ``None``。"""
    settings = get_settings()
    options = {"verify_aud": settings.auth_jwt_audience is not None}
    try:
        return jwt.decode(
            token,
            settings.auth_verification_key,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            issuer=settings.auth_jwt_issuer,
            options=options,
        )
    except JWTError as exc:  # pragma: no cover - logging side effect
        logger.warning("Failed to verify session token: %s", exc)
        return None


def extract_owner_id(payload: Dict[str, Any]) -> Optional[str]:
    """身份提供方把用户 ID 放在 ``sub`` 声明中；空值视为未认证。"""
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        return None
    return subject


def create_access_token(owner_id: str, expires_delta: Optional[timedelta] = None, **claims: Any) -> str:
    """生成一个与校验配置匹配的 HS* 令牌，供开发环境与测试使用。"""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    payload: Dict[str, Any] = {"sub": owner_id, "exp": expire, **claims}
    if settings.auth_jwt_issuer and "iss" not in payload:
        payload["iss"] = settings.auth_jwt_issuer
    if settings.auth_jwt_audience and "aud" not in payload:
        payload["aud"] = settings.auth_jwt_audience
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)
