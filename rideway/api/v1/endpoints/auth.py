from fastapi import APIRouter, Depends, Request, status
from rideway.api.deps import get_auth_service
from rideway.api.responses import to_json
from rideway.schemas.user import ResendOTPSchema, UserAuth, UserCreate, VerifyOTPSchema
from rideway.services.auth import AuthService

router = APIRouter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    ip = (
        request.headers.get("x-real-ip")
        or (forwarded.split(",")[0].strip() if forwarded else None)
        or (request.client.host if request.client else None)
        or "127.0.0.1"
    )
    return ip.replace("::ffff:", "")


@router.post("/signup")
async def signup(user: UserCreate, request: Request, auth: AuthService = Depends(get_auth_service)):
    """
    Registers a user after the geo check and emails the verification code.
    The client address is taken from X-Real-IP, then X-Forwarded-For, then the socket peer.
    """
    result = await auth.register(user.model_dump(exclude_none=True), ip=client_ip(request))
    return to_json(result, status.HTTP_201_CREATED)


@router.post("/login")
async def login(user: UserAuth, auth: AuthService = Depends(get_auth_service)):
    return to_json(await auth.login(user.email, user.password))


@router.post("/verify-otp")
async def verify_otp(data: VerifyOTPSchema, auth: AuthService = Depends(get_auth_service)):
    return to_json(await auth.verify_otp(data.user_id, data.code))


@router.post("/resend-otp")
async def resend_otp(data: ResendOTPSchema, auth: AuthService = Depends(get_auth_service)):
    return to_json(await auth.resend_otp(data.user_id))
