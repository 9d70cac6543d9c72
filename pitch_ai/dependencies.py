from typing import Optional
import json
import logging
import os
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pitch_ai import config
from pitch_ai.supabase_client import get_supabase_admin, to_jsonable

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# Get the public key for ES256 verification (if available)
# Can be either PEM format or JWK JSON format
_raw_public_key = os.getenv("SUPABASE_JWT_PUBLIC_KEY", "")

SUPABASE_JWT_PUBLIC_KEY = None
if _raw_public_key:
    if _raw_public_key.startswith("-----BEGIN"):
        SUPABASE_JWT_PUBLIC_KEY = _raw_public_key.replace("\\n", "\n")
    elif _raw_public_key.startswith("{"):
        try:
            SUPABASE_JWT_PUBLIC_KEY = json.loads(_raw_public_key)
        except json.JSONDecodeError:
            logger.warning("Could not parse SUPABASE_JWT_PUBLIC_KEY as JWK")


def _invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode_locally(token: str) -> dict:
    """Verify a Supabase JWT without a network round trip."""
    # Support both ES256 (new) and HS256 (legacy) algorithms
    if SUPABASE_JWT_PUBLIC_KEY:
        payload = jwt.decode(token, SUPABASE_JWT_PUBLIC_KEY, algorithms=["ES256"], audience="authenticated")
    else:
        payload = jwt.decode(token, config.SUPABASE_JWT_SECRET, algorithms=["HS256"], audience="authenticated")

    user_id = payload.get("sub")
    if not user_id:
        raise _invalid_token()
    return {
        "id": user_id,
        "email": payload.get("email", ""),
        "role": payload.get("role"),
        "app_metadata": payload.get("app_metadata", {}),
        "user_metadata": payload.get("user_metadata", {}),
    }


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Resolve the bearer token to a Supabase user or raise 401."""
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = credentials.credentials

    if SUPABASE_JWT_PUBLIC_KEY or config.SUPABASE_JWT_SECRET:
        try:
            return _decode_locally(token)
        except JWTError as e:
            logger.info("JWT verification failed: %s", e)
            raise _invalid_token()

    try:
        response = get_supabase_admin().auth.get_user(token)
    except RuntimeError:
        raise
    except Exception as e:
        logger.info("Supabase rejected token: %s", e)
        raise _invalid_token()
    if not response or not response.user:
        raise _invalid_token()
    return to_jsonable(response.user)
