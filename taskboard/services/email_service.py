import asyncio
import smtplib
from email.message import EmailMessage

from taskboard.core import get_settings
from taskboard.logs.server_log import api_logger

settings = get_settings()


class EmailService:
    """Outbound mail over SMTP"""

    @staticmethod
    async def send_email(to: str, subject: str, html: str) -> None:
        """Send one HTML message; with no SMTP host configured it is only logged"""
        if not settings.SMTP_HOST:
            api_logger.info(f"Email (not sent, SMTP_HOST unset) to {to}: {subject}")
            return

        def _send_sync() -> None:
            message = EmailMessage()
            message["Subject"] = subject
            message["From"] = settings.MAIL_FROM
            message["To"] = to
            message.set_content(html, subtype="html")
            with smtplib.SMTP(host=settings.SMTP_HOST, port=settings.SMTP_PORT, timeout=15) as smtp:
                smtp.ehlo()
                if settings.SMTP_STARTTLS:
                    smtp.starttls()
                    smtp.ehlo()
                if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
                    smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
                smtp.send_message(message)

        await asyncio.to_thread(_send_sync)
        api_logger.info(f"Email sent to {to}: {subject}")

    @staticmethod
    async def send_welcome_email(email: str, name: str) -> None:
        """Welcome mail after registration; failures are logged and dropped"""
        html = (
            '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
            f"<h1>Welcome to {settings.PROJECT_NAME}!</h1>"
            f"<p>Hi {name},</p>"
            "<p>Get started by creating your first board and organizing your tasks.</p>"
            f'<p><a href="{settings.FRONTEND_URL}">Open your boards</a></p>'
            "</div>"
        )
        try:
            await EmailService.send_email(email, f"Welcome to {settings.PROJECT_NAME}", html)
        except Exception as e:
            api_logger.error(f"Failed to send welcome email to {email}: {str(e)}")
