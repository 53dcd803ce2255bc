"""Email service for sending notification emails."""

import logging
import os
import smtplib
import socket
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape

logger = logging.getLogger(__name__)


class EmailService:
    """
    Email service for sending notification emails over SMTP.

    When SMTP credentials are missing the service runs in dev mode: the
    message is logged instead of sent and the call reports success.
    """

    def __init__(self):
        self.smtp_host = os.getenv('SMTP_HOST', 'smtp.gmail.com')
        self.smtp_port = int(os.getenv('SMTP_PORT', '587'))
        self.smtp_user = os.getenv('SMTP_USER', '')
        self.smtp_password = os.getenv('SMTP_PASSWORD', '')
        self.from_email = os.getenv('FROM_EMAIL', self.smtp_user)
        self.from_name = os.getenv('FROM_NAME', 'Archalley Forum')
        self.site_url = os.getenv('SITE_URL', 'http://localhost:3000')
        # Timeout for SMTP operations (in seconds)
        self.smtp_timeout = int(os.getenv('SMTP_TIMEOUT', '10'))

    @property
    def is_configured(self):
        return bool(self.smtp_user and self.smtp_password)

    def _create_connection(self):
        """Create SMTP connection with timeout."""
        server = smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.smtp_timeout)
        server.starttls()
        if self.smtp_user and self.smtp_password:
            server.login(self.smtp_user, self.smtp_password)
        return server

    def send_email(self, to_email, subject, html_content, text_content=None):
        """
        Send an email.

        Returns:
            bool: True if sent successfully (or logged in dev mode), False otherwise
        """
        try:
            if not self.is_configured:
                logger.info(f"[EMAIL] SMTP not configured - DEV MODE. To: {to_email} Subject: {subject}")
                return True

            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            server = self._create_connection()
            try:
                server.sendmail(self.from_email, to_email, msg.as_string())
            finally:
                server.quit()

            logger.info(f"[EMAIL] Successfully sent email to {to_email}")
            return True

        except socket.timeout:
            logger.error(f"[EMAIL] SMTP connection timed out after {self.smtp_timeout}s")
            return False
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"[EMAIL] SMTP Authentication failed: {e}")
            return False
        except smtplib.SMTPException as e:
            logger.error(f"[EMAIL] SMTP error: {e}")
            return False
        except OSError as e:
            logger.error(f"[EMAIL] Failed to send email to {to_email}: {e}")
            return False

    def post_url(self, post_id):
        return f"{self.site_url}/posts/{post_id}"

    def build_notification(self, notification_type, user_name, author_name, post_title, post_url,
                           comment_content=None):
        """Return ``(subject, html, text)`` for a notification email."""
        if notification_type == 'POST_LIKE':
            subject = f"{author_name} liked your post"
            headline = f"{author_name} liked your post"
            body = f'Your post "{post_title}" received a new like.'
        elif notification_type == 'MENTION':
            subject = f"{author_name} mentioned you"
            headline = f"{author_name} mentioned you in a post"
            body = comment_content or f'You were mentioned in "{post_title}".'
        elif notification_type == 'POST_COMMENT':
            subject = f"{author_name} commented on your post"
            headline = subject
            body = comment_content or f'New comment on "{post_title}".'
        elif notification_type == 'COMMENT_REPLY':
            subject = f"{author_name} replied to your comment"
            headline = subject
            body = comment_content or f'New reply on "{post_title}".'
        else:
            subject = "New activity on Archalley Forum"
            headline = subject
            body = post_title or ''

        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head><meta charset="utf-8"></head>
        <body style="font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="margin: 0 0 16px;">{escape(headline)}</h2>
            <p>Hi <strong>{escape(user_name)}</strong>,</p>
            <p>{escape(body)}</p>
            <p><a href="{escape(post_url)}" style="background: #f97316; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px;">View post</a></p>
            <p style="font-size: 12px; color: #9ca3af;">You can change email preferences in your profile settings.</p>
        </body>
        </html>
        """
        text_content = f"Hi {user_name},\n\n{headline}\n{body}\n\nView: {post_url}\n"
        return subject, html_content, text_content


# Singleton instance
email_service = EmailService()
