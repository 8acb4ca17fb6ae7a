import uuid
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from app.core.config import settings

http_bearer = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

LOCAL_USER_ID = uuid.UUID(int=0)

class Principal(BaseModel):
    user_id: uuid.UUID
    roles: list[str] = []  # patient | doctor | secretary | admin
    scopes: list[str] = []

    def can(self, scope: str) -> bool:
        """``*`` grants everything; ``schedule:*`` grants every schedule scope."""
        if "*" in self.scopes or scope in self.scopes:
            return True
        resource = scope.split(":", 1)[0]
        return f"{resource}:*" in self.scopes

def _decode_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            audience=settings.REQUIRED_AUDIENCE,
            options={"verify_aud": settings.REQUIRED_AUDIENCE is not None},
        )
    except JWTError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}")

async def get_principal(creds: HTTPAuthorizationCredentials | None = Depends(http_bearer)) -> Principal:
    # local runs skip auth entirely
    if creds is None and settings.ENV == "local":
        return Principal(user_id=LOCAL_USER_ID, roles=["admin"], scopes=["*"])
    if creds is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    data = _decode_token(creds.credentials)
    try:
        user_id = uuid.UUID(str(data.get("sub") or data.get("user_id")))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token subject is not a user id")
    scopes = data.get("scopes", [])
    if isinstance(scopes, str):
        scopes = scopes.split()  # OAuth-style "scope" string
    return Principal(user_id=user_id, roles=data.get("roles", []), scopes=scopes)

def require_scopes(*needed: str):
    def dep(principal: Principal = Depends(get_principal)) -> Principal:
        missing = [s for s in needed if not principal.can(s)]
        if missing:
            logger.info(f"User {principal.user_id} denied, missing scopes {missing}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient scopes")
        return principal
    return dep
