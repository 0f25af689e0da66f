from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from rideway.core.security import get_password_hash
from rideway.db.models.otp_code import OTPCode
from rideway.db.models.user import User


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).filter(User.email == email))
    return result.scalars().first()


async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    result = await db.execute(select(User).filter(User.id == user_id))
    return result.scalars().first()


async def create_user(db: AsyncSession, user_data: dict) -> User:
    """
    Adds a user row to the current transaction.
    The plaintext password is replaced by its bcrypt hash before the insert.
    """
    data = dict(user_data)
    data["password"] = get_password_hash(data["password"])
    user = User(**data)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def update_user(db: AsyncSession, user: User, **fields) -> User:
    for name, value in fields.items():
        setattr(user, name, value)
    await db.flush()
    return user


async def set_password(db: AsyncSession, user: User, new_password: str) -> User:
    user.password = get_password_hash(new_password)
    await db.flush()
    return user


async def delete_user(db: AsyncSession, user: User) -> None:
    # OTP rows go with their owner even where the database does not enforce ON DELETE CASCADE.
    await db.execute(delete(OTPCode).where(OTPCode.user_id == user.id))
    await db.delete(user)
    await db.flush()
