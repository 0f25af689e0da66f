from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from rideway.db.models.otp_code import OTPCode


async def create_otp_code(db: AsyncSession, user_id: str, code: str, ttl_minutes: int = 10) -> OTPCode:
    """
    Adds a one-time code for the user to the current transaction.
    ttl_minutes - lifetime of the code (10 minutes by default).
    """
    now = datetime.utcnow()
    otp_code = OTPCode(
        user_id=user_id,
        code=code,
        created_at=now,
        expires_at=now + timedelta(minutes=ttl_minutes),
        is_used=False,
    )
    db.add(otp_code)
    await db.flush()
    return otp_code


async def get_latest_valid_otp(db: AsyncSession, user_id: str) -> Optional[OTPCode]:
    """
    Returns the most recently issued code of the user that is neither used nor expired.
    Older codes that are still within their lifetime are superseded by it.
    """
    now = datetime.utcnow()
    query = (
        select(OTPCode)
        .where(OTPCode.user_id == user_id)
        .where(OTPCode.is_used == False)  # noqa: E712
        .where(OTPCode.expires_at > now)
        .order_by(OTPCode.created_at.desc())
        .limit(1)
        .with_for_update()
    )
    result = await db.execute(query)
    return result.scalars().first()


async def mark_code_as_used(db: AsyncSession, otp_code: OTPCode) -> None:
    """Marks the code as used so it can never be presented again."""
    otp_code.is_used = True
    await db.flush()


async def delete_otp_code(db: AsyncSession, otp_id: str) -> None:
    await db.execute(delete(OTPCode).where(OTPCode.id == otp_id))
