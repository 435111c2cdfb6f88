from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from aimusic.config import settings


class AuthError(Exception):
    pass


def _candidate_secrets() -> list[str]:
    out: list[str] = []
    for v in [settings.JWT_HMAC_SECRET, settings.JWT_SECRET]:
        s = (v or "").strip()
        if s and s not in out:
            out.append(s)
    return out


def decode_access_token(token: str) -> dict[str, Any]:
    tok = (token or "").strip()
    if not tok:
        raise AuthError("missing_token")

    secrets = _candidate_secrets()
    if not secrets:
        raise AuthError("jwt_secret_missing")

    alg = (settings.JWT_ALG or "HS256").strip()
    issuer = (settings.JWT_ISSUER or "").strip() or None
    audience = (settings.JWT_AUDIENCE or "").strip() or None

    last_err: Optional[Exception] = None
    for secret in secrets:
        try:
            return jwt.decode(
                tok,
                secret,
                algorithms=[alg],
                issuer=issuer,
                audience=audience,
                options={"verify_aud": bool(audience), "verify_iss": bool(issuer)},
            )
        except ExpiredSignatureError as e:
            raise AuthError("token_expired") from e
        except JWTClaimsError as e:
            raise AuthError(f"token_claims_invalid:{e}") from e
        except JWTError as e:
            # signature / alg mismatch / malformed: try the next secret
            last_err = e

    raise AuthError("invalid_token") from last_err


def user_id_from_payload(payload: dict[str, Any]) -> UUID:
    raw = payload.get("sub") or payload.get("user_id")
    if not raw:
        raise AuthError("token_missing_sub")
    try:
        return UUID(str(raw))
    except ValueError as e:
        raise AuthError("token_sub_not_uuid") from e
