"""身份原语 -- 密码哈希、令牌签发/校验、Bearer 请求头解析

密码使用 Argon2（passlib CryptContext，随机盐 + 可配置 time_cost）；
令牌为 HS256 JWT（python-jose），携带 sub / username / role / iat / exp。
本模块不访问存储：decode_token 与 extract_identity 是纯函数。
"""

from datetime import UTC, datetime, timedelta
from functools import lru_cache

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import AppSettings
from .exceptions import InternalError, UnauthorizedError
from .models import AuthenticatedIdentity, SessionClaim, User, UserRole

BEARER_PREFIX = "Bearer "


@lru_cache(maxsize=8)
def get_password_context(time_cost: int) -> CryptContext:
    """按工作因子缓存 CryptContext，进程内共享"""
    return CryptContext(
        schemes=["argon2"],
        deprecated="auto",
        argon2__rounds=time_cost,
    )


def hash_password(password: str, settings: AppSettings) -> str:
    try:
        return get_password_context(settings.password_time_cost).hash(password)
    except (ValueError, TypeError) as e:
        raise InternalError(f"Password hash error: {e}") from e


def verify_password(plain: str, hashed: str, settings: AppSettings) -> bool:
    """校验密码；存储的哈希无法解析时视为内部错误"""
    try:
        return get_password_context(settings.password_time_cost).verify(plain, hashed)
    except (ValueError, TypeError) as e:
        raise InternalError("Password hash error") from e


def dummy_verify(settings: AppSettings) -> None:
    """用户名未命中时执行一次等价开销的校验，避免时间侧信道"""
    get_password_context(settings.password_time_cost).dummy_verify()


def create_access_token(
    user: User,
    settings: AppSettings,
    now: datetime | None = None,
) -> str:
    """签发访问令牌

    Args:
        user: 已通过密码校验的用户
        settings: 应用配置（密钥、有效期）
        now: 签发时间，默认为当前 UTC 时间

    Returns:
        JWT 字符串
    """
    issued_at = now or datetime.now(UTC)
    expires_at = issued_at + timedelta(hours=settings.token_lifetime_hours)
    claims = {
        "sub": user.id,
        "username": user.username,
        "role": user.role.value,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    try:
        return jwt.encode(
            claims,
            settings.jwt_secret.get_secret_value(),
            algorithm=settings.jwt_algorithm,
        )
    except JWTError as e:
        raise InternalError(f"Token creation failed: {e}") from e


def decode_token(
    token: str,
    settings: AppSettings,
    now: datetime | None = None,
) -> SessionClaim:
    """校验签名与有效期，返回 SessionClaim

    签名错误、结构错误、缺少声明、已过期（now >= exp）、
    或角色不在已知集合内，一律抛出 UnauthorizedError。
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
            # 过期判定使用 now >= exp，由下方自行处理
            options={"verify_exp": False},
        )
    except JWTError as e:
        raise UnauthorizedError(f"Invalid token: {e}") from e

    user_id = payload.get("sub")
    username = payload.get("username")
    role_value = payload.get("role")
    iat = payload.get("iat")
    exp = payload.get("exp")
    if not isinstance(user_id, str) or not isinstance(username, str):
        raise UnauthorizedError("Invalid token: missing subject")
    if not isinstance(iat, int) or not isinstance(exp, int) or exp <= iat:
        raise UnauthorizedError("Invalid token: bad validity window")

    try:
        role = UserRole(role_value)
    except ValueError:
        raise UnauthorizedError("Invalid role in token") from None

    current = now or datetime.now(UTC)
    if current.timestamp() >= exp:
        raise UnauthorizedError("Token expired")

    return SessionClaim(
        user_id=user_id,
        username=username,
        role=role,
        issued_at=datetime.fromtimestamp(iat, UTC),
        expires_at=datetime.fromtimestamp(exp, UTC),
    )


def extract_identity(
    raw_auth_header: str | None,
    settings: AppSettings,
    now: datetime | None = None,
) -> AuthenticatedIdentity:
    """解析 `Authorization: Bearer <token>` 请求头并校验令牌"""
    if not raw_auth_header:
        raise UnauthorizedError("Missing Authorization header")
    if not raw_auth_header.startswith(BEARER_PREFIX):
        raise UnauthorizedError(
            "Invalid Authorization header format. Use: Bearer <token>"
        )
    token = raw_auth_header[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthorizedError(
            "Invalid Authorization header format. Use: Bearer <token>"
        )

    claim = decode_token(token, settings, now=now)
    return AuthenticatedIdentity.from_claim(claim)
