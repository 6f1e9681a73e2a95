"""
Notification Service

Sends patient emails over SMTP. When no SMTP host is configured the message
is logged instead of sent, so development and tests never reach the network.
"""
import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Any, Dict, List, Optional

from crm.config.config import settings
from crm.core.templates import render_optional
from crm.core.utils import logger


class EmailService:
    """Service for sending emails."""

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.SMTP_HOST)

    @staticmethod
    async def send_email(
        to: str | List[str],
        subject: str,
        body: str,
        html: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> bool:
        """
        Send email using SMTP.

        Args:
            to: Recipient email(s)
            subject: Email subject
            body: Plain text body
            html: HTML body (optional)
            reply_to: Reply-To address (optional)

        Returns:
            bool: True if sent (or logged in mock mode)
        """
        if isinstance(to, str):
            to = [to]

        if not EmailService.is_configured():
            logger.log_info(
                {
                    "event": "email_mocked",
                    "to": to,
                    "subject": subject,
                    "body": body,
                }
            )
            return True

        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = f"{settings.FROM_NAME} <{settings.FROM_EMAIL}>"
            message["To"] = ", ".join(to)
            if reply_to:
                message["Reply-To"] = reply_to

            message.attach(MIMEText(body, "plain"))
            if html:
                message.attach(MIMEText(html, "html"))

            await aiosmtplib.send(
                message,
                hostname=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USER or None,
                password=settings.SMTP_PASSWORD or None,
                start_tls=True,
            )

            logger.log_info({"event": "email_sent", "to": to, "subject": subject})
            return True

        except (aiosmtplib.SMTPException, OSError) as e:
            logger.log_error(
                {
                    "event": "email_send_failed",
                    "to": to,
                    "subject": subject,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            return False

    @staticmethod
    async def send_template_email(
        to: str | List[str],
        subject: str,
        template_name: str,
        context: Dict[str, Any],
        **kwargs,
    ) -> bool:
        """
        Send email rendered from ``templates/emails/<template_name>.{txt,html}``.
        """
        body = render_optional(f"emails/{template_name}.txt", context)
        html = render_optional(f"emails/{template_name}.html", context)
        if body is None:
            body = context.get("message", "")

        return await EmailService.send_email(
            to=to, subject=subject, body=body, html=html, **kwargs
        )


class NotificationService:
    """High-level patient notifications."""

    @staticmethod
    async def send_booking_confirmation(
        patient_name: str,
        patient_email: str,
        service: str,
        date_label: str,
        time_slot: str,
    ) -> bool:
        return await EmailService.send_template_email(
            to=patient_email,
            subject=f"{settings.CLINIC_NAME}: appointment confirmed for {date_label}",
            template_name="booking_confirmation",
            context={
                "patient_name": patient_name,
                "service": service,
                "date": date_label,
                "time": time_slot,
                "practitioner": settings.PRACTITIONER_NAME,
                "reply_to": settings.CLINIC_EMAIL,
                "clinic_name": settings.CLINIC_NAME,
            },
            reply_to=settings.CLINIC_EMAIL,
        )
