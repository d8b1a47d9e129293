from fastapi import Header, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import datetime
import jwt
import time
import httpx
from jwt.algorithms import RSAAlgorithm, ECAlgorithm
from resume_builder.config import get_settings
from resume_builder.database import get_db
from resume_builder.models.user import User
from resume_builder.utils.logger import logger

# Cache for the identity provider's public key with TTL
_public_key_cache = None
_public_key_cached_at = 0.0
_JWKS_CACHE_TTL_SECONDS = 6 * 3600  # 6 hours

ASYMMETRIC_ALGORITHMS = ("ES256", "RS256")


class AuthConfigError(Exception):
    """Verification key could not be obtained"""


async def get_public_key():
    """
    Fetch the identity provider's public key for ES256/RS256 verification.
    Caches the key with a 6-hour TTL to pick up key rotations.
    """
    global _public_key_cache, _public_key_cached_at

    now = time.monotonic()
    if _public_key_cache and (now - _public_key_cached_at) < _JWKS_CACHE_TTL_SECONDS:
        logger.debug("[Auth] Using cached public key")
        return _public_key_cache

    jwks_url = get_settings().jwks_url
    if not jwks_url:
        raise AuthConfigError("JWKS_URL not configured")

    try:
        logger.info(f"[Auth] Fetching JWKS from: {jwks_url}")
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=5.0)
            response.raise_for_status()
            jwks = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"[Auth] Failed to fetch JWKS: {e}")
        raise AuthConfigError(f"JWKS fetch failed: {e}") from e

    keys = jwks.get("keys") or []
    if not keys:
        raise AuthConfigError("No keys found in JWKS")

    key_data = keys[0]
    if key_data.get("kty") == "RSA":
        public_key = RSAAlgorithm.from_jwk(key_data)
    elif key_data.get("kty") == "EC":
        public_key = ECAlgorithm.from_jwk(key_data)
    else:
        raise AuthConfigError(f"Unsupported key type: {key_data.get('kty')}")

    _public_key_cache = public_key
    _public_key_cached_at = time.monotonic()
    logger.info(f"[Auth] Cached public key (type: {key_data.get('kty')}, TTL: {_JWKS_CACHE_TTL_SECONDS}s)")
    return public_key


async def decode_token(token: str) -> dict:
    """Verify signature and expiry, returning the claims."""
    token_algorithm = jwt.get_unverified_header(token).get("alg", "HS256")

    if token_algorithm in ASYMMETRIC_ALGORITHMS:
        verification_key = await get_public_key()
        algorithms = list(ASYMMETRIC_ALGORITHMS)
    else:
        secret = get_settings().jwt_secret
        if not secret:
            raise AuthConfigError("JWT secret not set")
        verification_key = secret
        algorithms = ["HS256"]

    return jwt.decode(
        token,
        verification_key,
        algorithms=algorithms,
        options={"verify_exp": True, "verify_aud": False},
    )


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Validate the bearer JWT and return the user

    Expects Authorization header: Bearer <jwt_token>
    Creates the user record the first time a subject is seen

    Usage:
        @router.get("/endpoint")
        async def protected_endpoint(current_user: User = Depends(get_current_user)):
            ...
    """
    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization header format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"}
        )

    try:
        payload = await decode_token(parts[1])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=401,
            detail="Token expired. Please sign in again.",
            headers={"WWW-Authenticate": "Bearer"}
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=401,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"}
        )
    except AuthConfigError as e:
        logger.error(f"[Auth] Cannot verify token: {e}")
        raise HTTPException(
            status_code=500,
            detail="Server misconfiguration: token verification unavailable"
        )

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=401,
            detail="Invalid token: missing user ID"
        )

    user = await db.get(User, subject)
    if not user:
        user = User(
            id=subject,
            email=payload.get("email"),
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
        )
        db.add(user)
        logger.info(f"[Auth] Created new user from JWT: {subject}", extra={"user_id": subject})

    user.last_login = datetime.utcnow()
    await db.commit()
    return user
