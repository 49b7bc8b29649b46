"""
Transactional email over SMTP via fastapi-mail.

Every sender returns True/False and logs failures; callers never roll back a
state change because a notification could not be delivered.
"""
import asyncio
import logging
from functools import lru_cache
from html import escape
from urllib.parse import urlencode

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from vms.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


@lru_cache
def get_mailer() -> FastMail:
    config = ConnectionConfig(
        MAIL_USERNAME=settings.SMTP_USER,
        MAIL_PASSWORD=settings.SMTP_PASS,
        MAIL_FROM=settings.SMTP_FROM,
        MAIL_FROM_NAME=settings.SMTP_FROM_NAME,
        MAIL_PORT=settings.SMTP_PORT,
        MAIL_SERVER=settings.SMTP_HOST,
        MAIL_STARTTLS=settings.SMTP_STARTTLS,
        MAIL_SSL_TLS=settings.SMTP_SSL_TLS,
        USE_CREDENTIALS=bool(settings.SMTP_USER),
        VALIDATE_CERTS=True,
        SUPPRESS_SEND=1 if settings.MAIL_SUPPRESS_SEND else 0,
    )
    return FastMail(config)


def barcode_image_url(uid: str) -> str:
    """Code128 image of the pass code, rendered by the public bwip-js API."""
    query = urlencode({"bcid": "code128", "text": uid, "scale": 3, "includetext": ""})
    return f"{settings.BARCODE_API_URL}?{query}"


def _layout(title: str, body: str) -> str:
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #1a365d;">{escape(title)}</h2>
            {body}
            <p style="margin-top: 28px;">Regards,<br><strong>SCSVMV Administration</strong></p>
            <p style="color: #94a3b8; font-size: 11px;">This is an automated message. Please do not reply to this email.</p>
        </div>
    </body>
    </html>
    """


def _detail_rows(rows: list[tuple[str, str]]) -> str:
    cells = "".join(
        f'<tr><td style="color: #64748b; padding: 6px 12px 6px 0;">{escape(label)}</td>'
        f'<td style="font-weight: 600;">{escape(value)}</td></tr>'
        for label, value in rows
    )
    return f'<table style="margin: 16px 0;">{cells}</table>'


async def send_email(to_email: str, subject: str, html_body: str) -> bool:
    message = MessageSchema(
        subject=subject,
        recipients=[to_email],
        body=html_body,
        subtype=MessageType.html,
    )
    try:
        await get_mailer().send_message(message)
        logger.info("Email sent to %s subject=%r", to_email, subject)
        return True
    except Exception as exc:
        logger.error("Failed to send email to %s: %s", to_email, exc, exc_info=True)
        return False


async def send_approval_email(to_email: str, visitor_name: str, uid: str, department: str) -> bool:
    body = (
        f"<p>Hello <strong>{escape(visitor_name)}</strong>,</p>"
        "<p>We are pleased to inform you that your visit has been approved. "
        "Please use the digital pass below for entry.</p>"
        + _detail_rows([("Visiting Department", department), ("Visitor UID", uid)])
        + f'<p style="text-align: center;"><img src="{escape(barcode_image_url(uid))}" alt="Visitor Barcode"></p>'
        "<p>Please present this email or the barcode above to the security personnel "
        "at the main gate for express check-in.</p>"
    )
    return await send_email(to_email, "Visitor Pass Approved - SCSVMV", _layout("Visitor Pass Approved", body))


async def send_password_reset_email(to_email: str, new_password: str) -> bool:
    body = (
        "<p>Dear User,</p>"
        "<p>Your password has been reset by the system administrator. "
        "Please use the credentials below to access your account.</p>"
        + _detail_rows([("Email Address", to_email), ("Password", new_password)])
        + "<p><strong>Security Notice:</strong> Do not share this password with anyone.</p>"
        "<p>If you did not request this password reset, please contact the IT Administrator immediately.</p>"
    )
    return await send_email(to_email, "Password Reset - SCSVMV Portal", _layout("Password Reset Notification", body))


async def send_new_request_email(
    to_email: str,
    visitor_name: str,
    visitor_email: str,
    organization: str,
    department: str,
    purpose: str,
) -> bool:
    body = (
        f"<p>Hello <strong>{escape(department)}</strong> Department Admin,</p>"
        "<p>A new visitor request has been submitted and is awaiting your review.</p>"
        + _detail_rows(
            [
                ("Visitor Name", visitor_name),
                ("Email", visitor_email),
                ("Organization", organization),
                ("Purpose of Visit", purpose),
            ]
        )
        + "<p>Please log in to your department dashboard to approve or reject this request.</p>"
    )
    return await send_email(
        to_email,
        f"New Visitor Request - {visitor_name} ({department})",
        _layout("New Visitor Request Received", body),
    )


async def notify_department_admins(
    admin_emails: list[str],
    visitor_name: str,
    visitor_email: str,
    organization: str,
    department: str,
    purpose: str,
) -> dict:
    if not admin_emails:
        logger.warning("No department admins found for %s", department)
        return {"sent": 0, "failed": 0}

    results = await asyncio.gather(
        *(
            send_new_request_email(email, visitor_name, visitor_email, organization, department, purpose)
            for email in admin_emails
        ),
        return_exceptions=True,
    )
    sent = sum(1 for result in results if result is True)
    failed = len(results) - sent
    logger.info("Department %s new request notification: %s sent, %s failed", department, sent, failed)
    return {"sent": sent, "failed": failed}
