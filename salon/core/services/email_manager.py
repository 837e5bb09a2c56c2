"""
Email Manager Service for centralized email sending.

This module renders the Jinja2 email templates and hands them to BrevoService
for delivery. Two kinds of mail leave the system:

- the one-time verification code for booking management, whose delivery
  failure must be reported to the caller;
- the new-booking notification for the salon admin, which is best-effort.

Example usage:
    EmailManagerService.init()

    await EmailManagerService.send_otp_email(
        email="user@example.com",
        otp_code="123456",
    )
"""

from datetime import date, datetime
from typing import Any

from salon.core.config import email_manager_logger, settings
from salon.core.exceptions.types import EmailDeliveryException
from salon.core.services.brevo import BrevoService, Contact, ListContact
from salon.core.services.template import Renderer
from salon.core.utils import mask_otp


__all__ = ["EmailManagerService"]


class EmailManagerService:
    """
    Centralized email management service.

    Attributes:
        _initialized: Flag indicating whether the service has been initialized.
    """

    _initialized: bool = False

    @classmethod
    def init(cls) -> None:
        """
        Initialize the EmailManagerService.

        Should be called during application startup after BrevoService and
        Renderer are initialized.
        """
        if not Renderer.is_initialized():
            Renderer.initialize()
        cls._initialized = True
        email_manager_logger.info("EmailManagerService initialized")

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._initialized

    @classmethod
    async def send_email(
        cls,
        email: str,
        subject: str,
        html_template: str,
        context: dict[str, Any],
        text_template: str | None = None,
        recipient_name: str | None = None,
    ) -> bool:
        """
        Send an email using a custom template.

        This is the base method for sending emails. It renders the provided
        templates with the given context and sends the email via BrevoService.
        Failures are logged and reported as ``False``.

        Args:
            email: Recipient email address.
            subject: Email subject line.
            html_template: Name of the HTML template file.
            context: Dictionary of context variables for template rendering.
            text_template: Optional name of the plain text template file.
            recipient_name: Optional recipient name for personalization.

        Returns:
            bool: True if email was sent successfully, False otherwise.
        """
        try:
            html_content = await Renderer.render_template(
                html_template, context=context
            )

            text_content = None
            if text_template:
                text_content = await Renderer.render_template(
                    text_template, context=context
                )

            recipient = Contact(email=email, name=recipient_name)

            await BrevoService.send_transactional_email(
                to=ListContact(to=[recipient]),
                subject=subject,
                htmlContent=html_content,
                textContent=text_content,
            )

            email_manager_logger.info(f"Email sent successfully: subject='{subject}'")
            return True

        except Exception as e:
            email_manager_logger.error(
                f"Failed to send email: subject='{subject}', error={e}"
            )
            return False

    @classmethod
    async def send_otp_email(cls, email: str, otp_code: str) -> None:
        """
        Send the booking-management verification code.

        In development, when no Brevo API key is configured, the masked code
        is logged and the message is treated as sent.

        Args:
            email: Recipient email address.
            otp_code: The plaintext code. Only ever rendered into the message.

        Raises:
            EmailDeliveryException: If the provider did not accept the message.
        """
        if not BrevoService.is_configured() and settings.ENVIRONMENT != "production":
            email_manager_logger.warning(
                f"Brevo not configured; skipping delivery of code {mask_otp(otp_code)}"
            )
            return

        context = {
            "app_name": settings.APP_NAME,
            "otp_code": otp_code,
            "expiry_minutes": settings.OTP_EXPIRY_MINUTES,
            "year": datetime.now().year,
        }

        sent = await cls.send_email(
            email=email,
            subject=f"Din verifieringskod - {settings.APP_NAME}",
            html_template="emails/otp_email.html",
            text_template="emails/otp_email.txt",
            context=context,
        )
        if not sent:
            raise EmailDeliveryException("Failed to send verification code")

    @classmethod
    async def send_booking_notification(
        cls,
        name: str,
        email: str,
        phone: str | None,
        service: str,
        booking_date: date,
        booking_time: str,
        status: str,
        message: str | None = None,
    ) -> bool:
        """
        Notify the salon admin about a new booking.

        Skipped (returns False) when ADMIN_NOTIFICATION_EMAIL is not set.

        Returns:
            bool: True if the notification was sent.
        """
        admin_email = settings.ADMIN_NOTIFICATION_EMAIL
        if not admin_email:
            email_manager_logger.info(
                "ADMIN_NOTIFICATION_EMAIL not set; skipping booking notification"
            )
            return False

        context = {
            "app_name": settings.APP_NAME,
            "customer_name": name,
            "customer_email": email,
            "customer_phone": phone,
            "service": service,
            "booking_date": booking_date.strftime("%A, %B %d, %Y"),
            "booking_time": booking_time,
            "status": status,
            "message": message,
            "year": datetime.now().year,
        }

        return await cls.send_email(
            email=admin_email,
            subject=f"New Booking: {name} - {service}",
            html_template="emails/booking_notification.html",
            text_template="emails/booking_notification.txt",
            context=context,
        )
