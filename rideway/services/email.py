import asyncio
import logging
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from rideway.core.constants import AUTH_ERRORS
from rideway.schemas.response import ErrorCode, ServiceResult, fail, ok

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Your Verification Code"
MAX_BACKOFF_MS = 10_000


class SMTPTransport:
    """Delivers through the configured SMTP server with fastapi-mail."""

    def __init__(self, conf: ConnectionConfig):
        self.mailer = FastMail(conf)

    async def send_message(self, to: str, subject: str, html: str) -> Optional[str]:
        message = MessageSchema(
            subject=subject,
            recipients=[to],
            body=html,
            subtype=MessageType.html,
        )
        await self.mailer.send_message(message)
        return None


class PreviewTransport:
    """
    Non-production transport: every message is written to an HTML file
    instead of being delivered, and the file path is returned as the
    delivery identifier.
    """

    def __init__(self, preview_dir: str, sender: str = "test@example.com"):
        self.preview_dir = Path(preview_dir)
        self.sender = sender

    async def send_message(self, to: str, subject: str, html: str) -> Optional[str]:
        self.preview_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.utcnow().strftime("%Y%m%dT%H%M%S")
        path = self.preview_dir / f"{timestamp}_{uuid.uuid4().hex}.html"
        header = f"<!-- from: {self.sender} | to: {to} | subject: {subject} -->\n"
        path.write_text(header + html, encoding="utf-8")
        logger.info("Preview for %s written to %s", to, path)
        return str(path)


def build_transport(settings):
    if settings.is_production:
        conf = ConnectionConfig(
            MAIL_USERNAME=settings.MAIL_USERNAME,
            MAIL_PASSWORD=settings.MAIL_PASSWORD,
            MAIL_FROM=settings.MAIL_FROM,
            MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
            MAIL_PORT=settings.MAIL_PORT,
            MAIL_SERVER=settings.MAIL_SERVER,
            MAIL_STARTTLS=settings.MAIL_STARTTLS,
            MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
            USE_CREDENTIALS=bool(settings.MAIL_USERNAME),
            TIMEOUT=settings.MAIL_TIMEOUT,
        )
        return SMTPTransport(conf)
    return PreviewTransport(settings.MAIL_PREVIEW_DIR, sender=settings.MAIL_FROM)


class CooldownCache:
    """
    In-memory, per-process map of keys to the moment their cooldown ends.

    ``acquire`` checks and reserves in one synchronous step, so coroutines
    sharing the cache on one event loop cannot both pass for the same key.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, float] = {}

    def acquire(self, key: str) -> bool:
        now = self._clock()
        self._purge(now)
        if key in self._entries:
            return False
        self._entries[key] = now + self.ttl_seconds
        return True

    def release(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        expires_at = self._entries.get(key)
        return expires_at is not None and expires_at > self._clock()

    def _purge(self, now: float) -> None:
        expired = [key for key, expires_at in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]


class EmailService:
    """
    Sends templated mail with retries and an OTP cooldown per recipient.

    Every outcome comes back as a ServiceResult; transport errors never
    escape ``send`` or ``send_otp``.
    """

    def __init__(
        self,
        transport,
        cooldown: Optional[CooldownCache] = None,
        max_retries: int = 3,
        otp_expiry_minutes: int = 10,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.transport = transport
        self.cooldown = cooldown if cooldown is not None else CooldownCache(300)
        self.max_retries = max_retries
        self.otp_expiry_minutes = otp_expiry_minutes
        self._sleep = sleep

    @staticmethod
    def calculate_backoff(retry_count: int) -> float:
        """Seconds to wait before retry number ``retry_count`` (0-based): 1, 2, 4, ... capped at 10."""
        return min(2 ** retry_count * 1000, MAX_BACKOFF_MS) / 1000

    async def send(self, to: str, subject: str, html: str) -> ServiceResult:
        last_error = None
        for attempt in range(self.max_retries + 1):
            try:
                message_id = await self.transport.send_message(to, subject, html)
            except Exception as e:
                last_error = e
                logger.error("Failed to send email to %s: %s", to, e)
                if attempt < self.max_retries:
                    delay = self.calculate_backoff(attempt)
                    logger.info(
                        "Retrying email to %s in %.0fms (attempt %d/%d)",
                        to,
                        delay * 1000,
                        attempt + 1,
                        self.max_retries,
                    )
                    await self._sleep(delay)
                continue

            logger.info("Email sent to %s", to)
            return ok({"message_id": message_id, "attempts": attempt + 1})

        return fail(
            AUTH_ERRORS["EMAIL_SEND_FAILED"],
            ErrorCode.EMAIL_SEND_FAILED,
            details=str(last_error),
        )

    async def send_otp(self, email: str, code: str) -> ServiceResult:
        cache_key = f"otp_{email}"
        if not self.cooldown.acquire(cache_key):
            logger.warning("OTP email to %s refused, cooldown active", email)
            return fail(AUTH_ERRORS["OTP_RATE_LIMIT"], ErrorCode.OTP_RATE_LIMIT)

        result = await self.send(email, OTP_SUBJECT, self.otp_template(code))
        if not result.success:
            self.cooldown.release(cache_key)
        return result

    def otp_template(self, code: str) -> str:
        return f"""
            <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
                <h2>Your Verification Code</h2>
                <p>Please use the following code to verify your account:</p>
                <h1 style="font-size: 32px; letter-spacing: 5px; text-align: center; padding: 20px; background: #f5f5f5; border-radius: 5px;">{code}</h1>
                <p>This code will expire in {self.otp_expiry_minutes} minutes.</p>
                <p>If you didn't request this code, please ignore this email.</p>
            </div>
        """


def build_email_service(settings) -> EmailService:
    return EmailService(
        build_transport(settings),
        cooldown=CooldownCache(settings.OTP_RATE_LIMIT_SECONDS),
        max_retries=settings.EMAIL_MAX_RETRIES,
        otp_expiry_minutes=settings.OTP_EXPIRY_MINUTES,
    )
