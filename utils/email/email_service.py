"""
Email Service for sending emails via SMTP.

Supports Gmail, Office365, and other SMTP providers. A ``console`` backend
logs instead of sending, for local development.
"""

import smtplib
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

logger = logging.getLogger(__name__)


class EmailService:
    """Email service for sending emails."""

    def __init__(self, settings):
        """Initialize email service with settings."""
        self.enabled = settings.email_enabled
        self.backend = settings.email_backend
        self.host = settings.email_host
        self.port = settings.email_port
        self.use_tls = settings.email_use_tls
        self.use_ssl = settings.email_use_ssl
        self.username = settings.email_host_user
        self.password = settings.email_host_password
        self.from_address = settings.email_from_address
        self.from_name = settings.email_from_name
        self.password_reset_url = settings.password_reset_url
        self.reset_ttl_minutes = settings.password_reset_token_expire_minutes

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email content
            text_content: Plain text fallback content

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self.enabled:
            logger.warning("📧 Email sending is disabled. Enable in settings.")
            if self.backend == "console":
                logger.info(f"📧 Would send email to {to_email}: {subject}")
            return True  # Dev mode counts as delivered

        if not self.username or not self.password:
            logger.error("❌ Email credentials not configured")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_address}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            if self.use_ssl:
                server = smtplib.SMTP_SSL(self.host, self.port, timeout=30)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=30)

            try:
                if self.use_tls and not self.use_ssl:
                    server.starttls()
                server.login(self.username, self.password)
                server.sendmail(self.from_address, [to_email], msg.as_string())
            finally:
                server.quit()

            logger.info(f"✅ Email sent successfully to {to_email}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Failed to send email to {to_email}: {type(e).__name__}: {e}")
            return False

    def build_reset_link(self, raw_secret: str) -> str:
        """Link the user clicks to start the reset; carries the raw secret."""
        return f"{self.password_reset_url}?token={raw_secret}"

    def send_password_reset_email(self, to_email: str, name: str, raw_secret: str) -> bool:
        """
        Send password reset email with reset link.

        Args:
            to_email: Recipient email address
            name: Account display name
            raw_secret: Unhashed reset secret for the link

        Returns:
            True if email sent successfully
        """
        reset_link = self.build_reset_link(raw_secret)
        subject = "Password Reset Link"

        html_content = f"""
        <p>Hi {name},</p>
        <p>Click <a href="{reset_link}">here</a> to reset your password.
        Valid for {self.reset_ttl_minutes} minutes.</p>
        <p>If you did not request a password reset, you can ignore this email.</p>
        """
        text_content = (
            f"Hi {name},\n\n"
            f"Reset your password: {reset_link}\n"
            f"The link is valid for {self.reset_ttl_minutes} minutes.\n"
        )
        return self.send_email(to_email, subject, html_content, text_content)
