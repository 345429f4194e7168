"""Email delivery for password reset links."""

from __future__ import annotations

import html
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Protocol

from blogauth.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

RESET_PASSWORD_SUBJECT = "Reset Your Password - Blog App"


class EmailSender(Protocol):
    """Outbound email used by the password reset flow."""

    def send_password_reset(self, to_email: str, reset_link: str, display_name: str) -> None: ...


def redact_email(email: str) -> str:
    """Keep enough of an address to correlate logs without storing it."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def render_password_reset(display_name: str, reset_link: str, expiry: str = "1 hour") -> tuple:
    """Return (text_body, html_body) for a reset email."""
    text_body = (
        f"Hello {display_name},\n\n"
        "You requested to reset your password. Click the link below to reset it:\n\n"
        f"{reset_link}\n\n"
        f"This link will expire in {expiry}.\n\n"
        "If you didn't request this, please ignore this email.\n\n"
        "Best regards,\nBlog App Team"
    )

    safe_name = html.escape(display_name)
    safe_link = html.escape(reset_link, quote=True)
    html_body = f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <title>Reset Your Password</title>
</head>
<body style="margin: 0; padding: 20px; background-color: #f4f4f4; font-family: Arial, sans-serif;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 8px; padding: 30px;">
    <h1 style="font-size: 22px; color: #1f2937;">Reset Your Password</h1>
    <p>Hello <strong>{safe_name}</strong>,</p>
    <p>You requested to reset your password. Click the button below to set a new password.</p>
    <p style="margin: 30px 0;">
      <a href="{safe_link}" style="background: #2563eb; color: #ffffff; padding: 14px 32px; border-radius: 6px; text-decoration: none; font-weight: bold;">Reset My Password</a>
    </p>
    <p><strong>Important:</strong> This link will expire in <strong>{expiry}</strong>.</p>
    <p>If the button doesn't work, copy and paste this link into your browser:</p>
    <p style="word-break: break-all; background-color: #f3f4f6; padding: 10px;">{safe_link}</p>
    <p>If you did not request this password reset, you can safely ignore this email.</p>
    <p style="font-size: 12px; color: #6b7280;">Blog App Team. This is an automated email. Please do not reply.</p>
  </div>
</body>
</html>
"""
    return text_body, html_body


class SmtpEmailSender:
    """EmailSender over SMTP (STARTTLS or implicit TLS)."""

    def __init__(
        self,
        *,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        use_tls: bool = True,
        from_email: Optional[str] = None,
        from_name: str = "Blog App",
        timeout: int = 30,
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.use_tls = use_tls
        self.from_email = from_email or smtp_user
        self.from_name = from_name
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def _build_message(self, to_email: str, subject: str, text_body: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))
        return msg

    def _deliver(self, to_email: str, msg: MIMEMultipart) -> None:
        context = ssl.create_default_context()
        if self.use_tls:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls(context=context)
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())
        else:
            with smtplib.SMTP_SSL(
                self.smtp_host, self.smtp_port, context=context, timeout=self.timeout
            ) as server:
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())

    def send_password_reset(self, to_email: str, reset_link: str, display_name: str) -> None:
        """
        Send the reset link

        Raises:
            EmailDeliveryError: If SMTP is not configured or delivery fails
        """
        if not self.is_configured:
            logger.error("Email transport not configured - check EMAIL_HOST and EMAIL_FROM")
            raise EmailDeliveryError()

        text_body, html_body = render_password_reset(display_name, reset_link)
        msg = self._build_message(to_email, RESET_PASSWORD_SUBJECT, text_body, html_body)

        try:
            self._deliver(to_email, msg)
        except (smtplib.SMTPException, ssl.SSLError, OSError) as exc:
            logger.error(
                "Password reset email to %s failed: %s",
                redact_email(to_email),
                type(exc).__name__,
            )
            raise EmailDeliveryError() from exc

        logger.info("Password reset email sent to %s", redact_email(to_email))
