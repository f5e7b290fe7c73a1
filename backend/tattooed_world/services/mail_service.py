"""
Tattooed World Backend — Transactional Mail
=============================================

What:  Verification, password-reset, artist-approval and new-review e-mails.
How:   Plain-text messages sent over SMTP (smtplib in a worker thread so the
       event loop is never blocked). Without SMTP_HOST the message is logged
       instead, which is what local development and the test suite rely on.
Who:   AuthService, AdminService and ReviewService.

Delivery failures are logged and swallowed: an unreachable mail server must
not turn a successful registration or review into a 500.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from tattooed_world.config import settings

logger = logging.getLogger(__name__)


class MailService:
    @property
    def configured(self) -> bool:
        return bool(settings.smtp_host)

    def _link(self, path: str, token: str) -> str:
        return f"{settings.frontend_url.rstrip('/')}{path}?token={token}"

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_username:
                smtp.login(settings.smtp_username, settings.smtp_password)
            smtp.send_message(message)

    async def send(self, to: str, subject: str, body: str) -> bool:
        """Returns True when the message was handed to the SMTP server."""
        if not self.configured:
            logger.info("Mail not sent (SMTP not configured): to=%s subject=%r", to, subject)
            logger.debug("Mail body for %s:\n%s", to, body)
            return False

        message = EmailMessage()
        message["From"] = settings.mail_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send mail to %s (%r): %s", to, subject, exc)
            return False

        logger.info("Mail sent: to=%s subject=%r", to, subject)
        return True

    async def send_verification_email(self, email: str, first_name: str, token: str) -> bool:
        link = self._link("/verify-email", token)
        body = (
            f"Hi {first_name},\n\n"
            "Welcome to Tattooed World! Please confirm your e-mail address:\n\n"
            f"{link}\n\n"
            f"This link expires in {settings.verification_token_ttl_hours} hours.\n"
        )
        return await self.send(email, "Verify your e-mail - Tattooed World", body)

    async def send_password_reset_email(self, email: str, first_name: str, token: str) -> bool:
        link = self._link("/reset-password", token)
        body = (
            f"Hi {first_name},\n\n"
            "We received a request to reset your password. Choose a new one here:\n\n"
            f"{link}\n\n"
            f"This link expires in {settings.reset_token_ttl_minutes} minutes. "
            "If you did not ask for a reset you can ignore this e-mail.\n"
        )
        return await self.send(email, "Reset your password - Tattooed World", body)

    async def send_artist_status_email(self, email: str, first_name: str, status: str) -> bool:
        if status == "APPROVED":
            subject = "Your artist profile is live - Tattooed World"
            text = "Your artist profile has been approved and is now visible to clients."
        else:
            subject = "Update on your artist profile - Tattooed World"
            text = f"Your artist profile status is now {status.lower()}."
        return await self.send(email, subject, f"Hi {first_name},\n\n{text}\n")

    async def send_review_notification(self, email: str, first_name: str, rating: int) -> bool:
        body = (
            f"Hi {first_name},\n\n"
            f"You received a new {rating}-star review on Tattooed World.\n"
        )
        return await self.send(email, "New review on your profile - Tattooed World", body)


mail_service = MailService()
