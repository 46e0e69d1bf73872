"""
Email service - handles sending emails.
Currently supports: Mock (development) and SMTP (production ready).
"""
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from abc import ABC, abstractmethod

from teamledger.config import settings

logger = logging.getLogger(__name__)


class EmailService(ABC):
    """Base email service interface."""
    
    @abstractmethod
    async def send_email(
        self, 
        to: str, 
        subject: str, 
        body: str, 
        html: Optional[str] = None
    ) -> bool:
        """Send an email."""
        pass
    
    async def send_invite_email(
        self, 
        to: str, 
        invite_link: str, 
        business_name: str,
        role: str,
        inviter_name: str,
        expires_in_days: int
    ) -> bool:
        """Send a team invitation email."""
        subject = f"{inviter_name} invited you to join {business_name}"
        body = f"""
Hello,

{inviter_name} has invited you to join {business_name} as {role}.

Accept the invitation by opening the link below:

{invite_link}

This link expires in {expires_in_days} days and can only be used once.

If you weren't expecting this invitation, you can ignore this email.

Best regards,
Team Ledger
        """
        
        html = f"""
        <html>
        <body>
            <h2>You're invited to {business_name}</h2>
            <p>{inviter_name} has invited you to join as <strong>{role}</strong>.</p>
            <p>
                <a href="{invite_link}" 
                   style="background-color: #2196F3; color: white; padding: 14px 25px; 
                          text-decoration: none; display: inline-block; border-radius: 4px;">
                    Accept Invitation
                </a>
            </p>
            <p>Or copy this link: {invite_link}</p>
            <p><small>This link expires in {expires_in_days} days.</small></p>
        </body>
        </html>
        """
        
        return await self.send_email(to, subject, body, html)


class MockEmailService(EmailService):
    """
    Mock email service for development.
    Logs emails instead of sending.
    """
    
    def __init__(self):
        # Store sent emails for testing/debugging
        self.sent_emails: list = []
    
    async def send_email(
        self, 
        to: str, 
        subject: str, 
        body: str, 
        html: Optional[str] = None
    ) -> bool:
        """Mock send - logs and stores for debugging."""
        self.sent_emails.append({
            "to": to,
            "subject": subject,
            "body": body
        })
        logger.info(f"MOCK EMAIL to={to} subject={subject!r}\n{body}")
        return True
    
    def get_last_email(self) -> Optional[dict]:
        """Get the last sent email (for testing)."""
        return self.sent_emails[-1] if self.sent_emails else None


class SMTPEmailService(EmailService):
    """
    SMTP email service for production.
    Configure with environment variables:
    - SMTP_HOST
    - SMTP_PORT
    - SMTP_USER
    - SMTP_PASSWORD
    - EMAIL_FROM
    """
    
    def __init__(self):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
    
    async def send_email(
        self, 
        to: str, 
        subject: str, 
        body: str, 
        html: Optional[str] = None
    ) -> bool:
        """Send email via SMTP."""
        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = self.from_email
            msg['To'] = to
            
            # Add plain text
            msg.attach(MIMEText(body, 'plain'))
            
            # Add HTML if provided
            if html:
                msg.attach(MIMEText(html, 'html'))
            
            with smtplib.SMTP(self.host, self.port) as server:
                server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.sendmail(self.from_email, to, msg.as_string())
            
            logger.info(f"Email sent to {to}: {subject}")
            return True
            
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False


# =============================================================================
# EMAIL SERVICE SINGLETON
# =============================================================================

_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get the email service instance."""
    global _email_service
    
    if _email_service is None:
        if settings.SMTP_HOST:
            logger.info("Using SMTP Email Service")
            _email_service = SMTPEmailService()
        else:
            logger.info("Using Mock Email Service (emails are logged)")
            _email_service = MockEmailService()
    
    return _email_service


def set_email_service(service: Optional[EmailService]) -> None:
    """Set custom email service (for testing)."""
    global _email_service
    _email_service = service
