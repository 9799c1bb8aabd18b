import hmac
import os
from datetime import datetime, timedelta, timezone

from dotenv import load_dotenv
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
TOKEN_TTL = timedelta(minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60)))

ADMIN_USERNAME = (os.getenv("ADMIN_USERNAME") or "").strip()
ADMIN_PASSWORD = (os.getenv("ADMIN_PASSWORD") or "").strip()
ADMIN_SCOPE = "registry:admin"

admin_token = OAuth2PasswordBearer(tokenUrl="api/admin/login", auto_error=False)


def admin_enabled() -> bool:
    return bool(SECRET_KEY and ADMIN_USERNAME and ADMIN_PASSWORD)


def check_admin_credentials(username: str, password: str) -> bool:
    if not admin_enabled():
        return False
    user_ok = hmac.compare_digest(username or "", ADMIN_USERNAME)
    pass_ok = hmac.compare_digest(password or "", ADMIN_PASSWORD)
    return user_ok and pass_ok


def issue_admin_token(username: str) -> str:
    now = datetime.now(timezone.utc)
    claims = {"sub": username, "scope": ADMIN_SCOPE, "iat": now, "exp": now + TOKEN_TTL}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_admin(token: str | None = Depends(admin_token)) -> str:
    if not admin_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Admin access is not configured")
    if not token:
        raise _unauthorized("Not authenticated")
    try:
        claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError:
        raise _unauthorized("Invalid token")
    if claims.get("scope") != ADMIN_SCOPE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin scope required")
    return claims.get("sub")
