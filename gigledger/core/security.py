"""Bearer token verification for tokens issued by the identity provider."""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from gigledger.core.config import get_settings
from gigledger.schemas import TokenData

security = HTTPBearer()


def create_access_token(user_id: str, role: str = "authenticated", expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token shaped like the provider's; used by tooling and tests."""
    settings = get_settings()
    payload = {
        "sub": user_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1)),
    }
    if settings.security.audience:
        payload["aud"] = settings.security.audience
    return jwt.encode(payload, settings.security.jwt_secret, algorithm=settings.security.algorithm)


def decode_access_token(token: str) -> TokenData:
    settings = get_settings()
    options = {"verify_aud": settings.security.audience is not None}
    try:
        payload = jwt.decode(
            token,
            settings.security.jwt_secret,
            algorithms=[settings.security.algorithm],
            audience=settings.security.audience,
            options=options,
        )
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
    return TokenData(user_id=user_id, role=payload.get("role"))


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> TokenData:
    return decode_access_token(credentials.credentials)
