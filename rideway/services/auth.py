import logging
import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from rideway.core.constants import AUTH_ERRORS
from rideway.core.security import TokenIssuer, dummy_verify, verify_password
from rideway.db.models.user import User, UserStatus
from rideway.db.repositories import otp_code as otp_repo
from rideway.db.repositories import user as user_repo
from rideway.db.session import unit_of_work
from rideway.schemas.response import ErrorCode, ServiceResult, fail, ok
from rideway.schemas.user import UserRead
from rideway.services.email import EmailService
from rideway.services.geo import GeoLocationService, GeoRestrictionChecker, LocationServiceError
from rideway.services.otp import generate_otp

logger = logging.getLogger(__name__)


def sanitize_user(user: User) -> dict:
    return UserRead.model_validate(user).model_dump()


def codes_match(expected: str, presented) -> bool:
    # compare_digest only accepts ASCII str, bytes work for any input
    return secrets.compare_digest(expected.encode("utf-8"), str(presented).encode("utf-8"))


class AuthService:
    """
    Registration, OTP verification and login.

    Collaborators are injected so tests can hand in an in-memory store, a
    recording mail transport and a scripted geo lookup.

    Mail is never sent while a transaction is open: rows are committed
    first, and a failed delivery is undone in a second unit of work.
    """

    def __init__(
        self,
        session_factory,
        email_service: EmailService,
        geo_checker: GeoRestrictionChecker,
        token_issuer: TokenIssuer,
        geo_lookup: Optional[GeoLocationService] = None,
        otp_length: int = 6,
        otp_expiry_minutes: int = 10,
        expose_otp: bool = False,
    ):
        self.session_factory = session_factory
        self.email_service = email_service
        self.geo_checker = geo_checker
        self.token_issuer = token_issuer
        self.geo_lookup = geo_lookup
        self.otp_length = otp_length
        self.otp_expiry_minutes = otp_expiry_minutes
        self.expose_otp = expose_otp

    async def register(
        self,
        user_data: dict,
        country_code: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> ServiceResult:
        if ip is not None and self.geo_lookup is not None:
            try:
                location = await self.geo_lookup.get_user_location(ip)
            except LocationServiceError as e:
                logger.error("Location lookup failed for %s: %s", ip, e)
                return fail(AUTH_ERRORS["LOCATION_UNAVAILABLE"], ErrorCode.LOCATION_UNAVAILABLE)
            country_code = location.country_code
            logger.info("Processing signup from %s (%s)", location.country, location.country_code)

        if self.geo_checker.is_restricted(country_code):
            return fail(AUTH_ERRORS["RESTRICTED_LOCATION"], ErrorCode.RESTRICTED_LOCATION)

        country = country_code.strip().upper() if country_code and country_code.strip() else None
        code = generate_otp(self.otp_length)

        try:
            async with unit_of_work(self.session_factory) as db:
                if await user_repo.get_user_by_email(db, user_data["email"]):
                    return fail(AUTH_ERRORS["USER_EXISTS"], ErrorCode.USER_EXISTS)

                user = await user_repo.create_user(db, {
                    **user_data,
                    "country": country,
                    "is_verified": False,
                    "status": UserStatus.ACTIVE,
                })
                await otp_repo.create_otp_code(db, user.id, code, self.otp_expiry_minutes)
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email.
            return fail(AUTH_ERRORS["USER_EXISTS"], ErrorCode.USER_EXISTS)

        delivery = await self.email_service.send_otp(user.email, code)
        if not delivery.success:
            await self._discard_registration(user.id)
            logger.warning("Registration of %s undone: %s", user.email, delivery.error.message)
            return delivery

        data = {
            "message": "Registration successful. Please verify your email.",
            "user_id": user.id,
        }
        if self.expose_otp:
            data["otp"] = code
        return ok(data)

    async def _discard_registration(self, user_id: str) -> None:
        async with unit_of_work(self.session_factory) as db:
            user = await user_repo.get_user_by_id(db, user_id)
            if user is not None and not user.is_verified:
                await user_repo.delete_user(db, user)

    async def resend_otp(self, user_id: str) -> ServiceResult:
        code = generate_otp(self.otp_length)
        async with unit_of_work(self.session_factory) as db:
            user = await user_repo.get_user_by_id(db, user_id)
            # Unknown and already verified ids get the same answer.
            if user is None or user.is_verified:
                return fail(AUTH_ERRORS["RESEND_NOT_ALLOWED"], ErrorCode.UNVERIFIED_USER)
            email = user.email
            otp = await otp_repo.create_otp_code(db, user.id, code, self.otp_expiry_minutes)

        delivery = await self.email_service.send_otp(email, code)
        if not delivery.success:
            # Dropping the undelivered code leaves the previous one in force.
            async with unit_of_work(self.session_factory) as db:
                await otp_repo.delete_otp_code(db, otp.id)
            logger.warning("OTP resend for user %s not delivered: %s", user_id, delivery.error.message)
            return delivery

        data = {"message": "A new verification code has been sent.", "user_id": user_id}
        if self.expose_otp:
            data["otp"] = code
        return ok(data)

    async def verify_otp(self, user_id: str, code: str) -> ServiceResult:
        async with unit_of_work(self.session_factory) as db:
            otp = await otp_repo.get_latest_valid_otp(db, user_id)
            if otp is None or not codes_match(otp.code, code):
                return fail(AUTH_ERRORS["INVALID_OTP"], ErrorCode.INVALID_OTP)

            user = await user_repo.get_user_by_id(db, user_id)
            if user is None:
                return fail(AUTH_ERRORS["INVALID_OTP"], ErrorCode.INVALID_OTP)

            await otp_repo.mark_code_as_used(db, otp)
            await user_repo.update_user(db, user, is_verified=True)

        logger.info("User %s verified their email", user.id)
        token = self.token_issuer.issue(user.id, user.email)
        return ok({"token": token, "user": sanitize_user(user)})

    async def login(self, email: str, password: str) -> ServiceResult:
        async with unit_of_work(self.session_factory) as db:
            user = await user_repo.get_user_by_email(db, email)
            if user is None:
                dummy_verify()
                return fail(AUTH_ERRORS["INVALID_CREDENTIALS"], ErrorCode.INVALID_CREDENTIALS)
            if not verify_password(password, user.password):
                return fail(AUTH_ERRORS["INVALID_CREDENTIALS"], ErrorCode.INVALID_CREDENTIALS)

            if not user.is_verified:
                return fail(
                    AUTH_ERRORS["UNVERIFIED_USER"],
                    ErrorCode.UNVERIFIED_USER,
                    details={"user_id": user.id},
                )
            if user.status != UserStatus.ACTIVE:
                return fail(AUTH_ERRORS["ACCOUNT_INACTIVE"], ErrorCode.ACCOUNT_INACTIVE)

            await user_repo.update_user(db, user, last_login_at=datetime.utcnow())

        token = self.token_issuer.issue(user.id, user.email)
        return ok({"token": token, "user": sanitize_user(user)})
