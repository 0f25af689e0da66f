from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from rideway.core.security import TokenIssuer
from rideway.db.models.user import User, UserStatus
from rideway.db.repositories import user as user_repo
from rideway.db.session import unit_of_work
from rideway.schemas.response import ErrorCode, fail
from rideway.services.auth import AuthService
from rideway.services.product import ProductService
from rideway.services.user import UserService

bearer = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_product_service(request: Request) -> ProductService:
    return request.app.state.product_service


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_session_factory(request: Request):
    return request.app.state.session_factory


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=fail(message, ErrorCode.UNAUTHORIZED).to_response(),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    session_factory=Depends(get_session_factory),
) -> User:
    if creds is None or (creds.scheme or "").lower() != "bearer":
        raise _unauthorized("No token provided")

    claims = token_issuer.verify(creds.credentials)
    if claims is None:
        raise _unauthorized("Invalid or expired token")

    async with unit_of_work(session_factory) as db:
        user = await user_repo.get_user_by_id(db, claims["user_id"])

    if user is None:
        raise _unauthorized("User not found")
    if not user.is_verified:
        raise _unauthorized("Email not verified")
    if user.status != UserStatus.ACTIVE:
        raise _unauthorized("Account is not active")
    return user
