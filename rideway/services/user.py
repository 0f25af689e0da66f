import logging

from rideway.core.security import verify_password
from rideway.db.repositories import user as user_repo
from rideway.db.session import unit_of_work
from rideway.schemas.response import ErrorCode, ServiceResult, fail, ok
from rideway.services.auth import sanitize_user

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"


class UserService:
    """Profile management for an authenticated user."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def get_profile(self, user_id: str) -> ServiceResult:
        async with unit_of_work(self.session_factory) as db:
            user = await user_repo.get_user_by_id(db, user_id)
            if user is None:
                return fail(USER_NOT_FOUND, ErrorCode.NOT_FOUND)
            return ok(sanitize_user(user))

    async def update_profile(self, user_id: str, update_data: dict) -> ServiceResult:
        # Only name and phone number are editable here; empty values are ignored.
        fields = {
            key: value
            for key, value in update_data.items()
            if key in ("name", "phone_number") and value
        }
        async with unit_of_work(self.session_factory) as db:
            user = await user_repo.get_user_by_id(db, user_id)
            if user is None:
                return fail(USER_NOT_FOUND, ErrorCode.NOT_FOUND)
            if fields:
                await user_repo.update_user(db, user, **fields)
        return ok(sanitize_user(user))

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> ServiceResult:
        async with unit_of_work(self.session_factory) as db:
            user = await user_repo.get_user_by_id(db, user_id)
            if user is None:
                return fail(USER_NOT_FOUND, ErrorCode.NOT_FOUND)
            if not verify_password(current_password, user.password):
                return fail("Current password is incorrect", ErrorCode.INVALID_CREDENTIALS)
            await user_repo.set_password(db, user, new_password)

        logger.info("Password changed for user %s", user_id)
        return ok({"message": "Password updated successfully"})

    async def delete_account(self, user_id: str) -> ServiceResult:
        async with unit_of_work(self.session_factory) as db:
            user = await user_repo.get_user_by_id(db, user_id)
            if user is None:
                return fail(USER_NOT_FOUND, ErrorCode.NOT_FOUND)
            await user_repo.delete_user(db, user)

        logger.info("Account %s deleted", user_id)
        return ok({"message": "Account deleted successfully"})
