from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from rideway.core.config import settings

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """Burn roughly the time of one hash check when there is no user to check."""
    pwd_context.dummy_verify()


class TokenIssuer:
    """Signs and verifies the bearer tokens handed out after login or verification."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 24 * 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.expire_minutes)
        to_encode = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + expires_delta,
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[dict]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            return None
        return {"user_id": user_id, "email": email}


def build_token_issuer() -> TokenIssuer:
    return TokenIssuer(
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
