from fastapi import APIRouter, Depends, status
from rideway.api.deps import get_current_user, get_user_service
from rideway.api.responses import to_json
from rideway.db.models.user import User
from rideway.schemas.user import PasswordChange, ProfileUpdate
from rideway.services.user import UserService

router = APIRouter()


@router.get("/profile")
async def get_profile(
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return to_json(await users.get_profile(current_user.id))


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return to_json(await users.update_profile(current_user.id, data.model_dump(exclude_none=True)))


@router.put("/password")
async def change_password(
    data: PasswordChange,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    result = await users.change_password(current_user.id, data.current_password, data.new_password)
    # wrong current password is a bad request, not a failed login
    return to_json(result, error_status=status.HTTP_400_BAD_REQUEST)


@router.delete("/account")
async def delete_account(
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return to_json(await users.delete_account(current_user.id))
