"""Templated account emails sent over SMTP.

Senders raise on delivery failure; callers decide whether a failure matters.
When no SMTP credentials are configured the email is skipped and logged.
"""
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

import aiosmtplib

from backend.core import config
from backend.models.user import ROLE_ALUMNI, ROLE_SENIOR, User

logger = logging.getLogger(__name__)

_WRAPPER = '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">{body}</div>'
_SIGNATURE = '<p style="color: #6B7280;">- CollegeConnect Team</p>'


def is_configured() -> bool:
    return bool(config.SMTP_USER and config.SMTP_PASSWORD)


def build_message(to_email: str, subject: str, html_content: str, text_content: str | None = None) -> MIMEMultipart:
    message = MIMEMultipart("alternative")
    message["From"] = f"{config.EMAIL_FROM_NAME} <{config.EMAIL_FROM}>"
    message["To"] = to_email
    message["Subject"] = subject
    if text_content:
        message.attach(MIMEText(text_content, "plain"))
    message.attach(MIMEText(html_content, "html"))
    return message


async def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
    if not is_configured():
        logger.warning('SMTP is not configured, skipping "%s" email to %s', subject, to_email)
        return False

    message = build_message(to_email, subject, html_content, text_content)
    await aiosmtplib.send(
        message,
        hostname=config.SMTP_HOST,
        port=config.SMTP_PORT,
        username=config.SMTP_USER,
        password=config.SMTP_PASSWORD,
        start_tls=config.SMTP_START_TLS,
    )
    logger.info('Sent "%s" email to %s', subject, to_email)
    return True


def role_change_content(user: User, from_role: str, to_role: str) -> tuple[str, str, str]:
    name = escape(user.name or "there")
    if to_role == ROLE_SENIOR:
        subject = "You're Now a Senior on CollegeConnect!"
        body = (
            f'<h2 style="color: #4F46E5;">Congratulations, {name}!</h2>'
            '<p>Your role has been automatically updated to <strong>Senior</strong> as you are in your final year.</p>'
            '<ul><li>Mentor junior students</li><li>Share your experiences</li>'
            '<li>Lead project teams</li><li>Connect with the alumni network</li></ul>'
            '<p>Keep building amazing things!</p>'
        )
        text = f"Congratulations, {user.name}! Your CollegeConnect role is now Senior."
    elif to_role == ROLE_ALUMNI:
        subject = "Welcome to the Alumni Network - CollegeConnect"
        body = (
            f'<h2 style="color: #10B981;">Welcome to the Alumni Network, {name}!</h2>'
            '<p>Congratulations on your graduation! Your role has been updated to <strong>Alumni</strong>.</p>'
            '<p><strong>Important:</strong> your college email may expire soon. '
            'Please add a personal email to your profile to stay connected.</p>'
            f'<p><a href="{config.FRONTEND_URL}/profile">Update Profile</a></p>'
        )
        text = (
            f"Congratulations, {user.name}! Your CollegeConnect role is now Alumni. "
            f"Update your profile at {config.FRONTEND_URL}/profile."
        )
    else:
        subject = "Your CollegeConnect Role Was Updated"
        body = (
            f'<h2>Role Update</h2><p>Hi {name},</p>'
            f'<p>Your role has changed from <strong>{escape(from_role)}</strong> '
            f'to <strong>{escape(to_role)}</strong>.</p>'
        )
        text = f"Hi {user.name}, your CollegeConnect role changed from {from_role} to {to_role}."
    return subject, _WRAPPER.format(body=body + _SIGNATURE), text


async def send_role_change_email(user: User, from_role: str, to_role: str) -> None:
    subject, html_content, text_content = role_change_content(user, from_role, to_role)
    await send_email(user.email, subject, html_content, text_content)


async def send_approval_email(user: User) -> None:
    name = escape(user.name or "there")
    body = (
        f'<h2 style="color: #4F46E5;">Congratulations, {name}!</h2>'
        '<p>Your CollegeConnect account has been verified and approved.</p>'
        '<ul><li>Find hackathon teammates</li><li>Connect with seniors and alumni</li>'
        '<li>Share and access resources</li></ul>'
        f'<p><a href="{config.FRONTEND_URL}/login">Login Now</a></p>'
    )
    await send_email(
        user.email,
        "Your CollegeConnect Account is Approved!",
        _WRAPPER.format(body=body + _SIGNATURE),
        f"Hi {user.name}, your CollegeConnect account has been approved.",
    )


async def send_rejection_email(user: User, reason: str) -> None:
    name = escape(user.name or "there")
    body = (
        '<h2 style="color: #DC2626;">Account Verification Status</h2>'
        f'<p>Hello {name},</p><p>We have reviewed your CollegeConnect account application.</p>'
        f'<p><strong>Account Not Approved.</strong> Reason: {escape(reason)}</p>'
        '<p>If you believe this is a mistake, reply to this email with additional verification documents.</p>'
    )
    await send_email(
        user.email,
        "CollegeConnect Account Verification Update",
        _WRAPPER.format(body=body + _SIGNATURE),
        f"Hello {user.name}, your CollegeConnect account was not approved. Reason: {reason}",
    )
