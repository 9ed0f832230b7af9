from typing import Optional

import bcrypt
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import get_settings


class TokenError(ValueError):
    pass


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.token_secret, salt="access-token")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # malformed hash
        return False


def create_access_token(user_id: int, username: str) -> str:
    return _serializer().dumps({"uid": user_id, "sub": username})


def decode_access_token(
    token: str, *, max_age_seconds: Optional[int] = None
) -> tuple[int, str]:
    if max_age_seconds is None:
        max_age_seconds = get_settings().token_max_age_hours * 3600
    try:
        data = _serializer().loads(token, max_age=max_age_seconds)
    except SignatureExpired as exc:
        raise TokenError("Token expired") from exc
    except BadSignature as exc:
        raise TokenError("Invalid token") from exc

    if not isinstance(data, dict):
        raise TokenError("Invalid token")
    user_id = data.get("uid")
    username = data.get("sub")
    if not isinstance(user_id, int) or not isinstance(username, str):
        raise TokenError("Invalid token")
    return user_id, username
