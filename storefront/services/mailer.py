# storefront/services/mailer.py
import smtplib
from email.message import EmailMessage

from storefront.utils.retry import smtp_retry
from storefront.utils.settings import MailConfig, RetryConfig
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class Mailer:
    """
    Wysylka maili przez SMTP (tekst + html).
    send() nigdy nie rzuca, zwraca True/False.
    """

    def __init__(self, config: MailConfig, retry_config: RetryConfig | None = None):
        self.config = config
        self.retry_config = retry_config or RetryConfig()

    def build_message(self, to: str, subject: str, text: str, html: str | None = None) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.config.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.config.host, self.config.port, timeout=self.config.timeout) as smtp:
            if self.config.use_tls:
                smtp.starttls()
            if self.config.username:
                smtp.login(self.config.username, self.config.password or "")
            smtp.send_message(msg)

    def send(self, to: str, subject: str, text: str, html: str | None = None) -> bool:
        if not self.config.enabled:
            logger.warning(f"SMTP not configured, skipping mail '{subject}' to {to}")
            return False

        msg = self.build_message(to, subject, text, html)

        try:
            smtp_retry(self.retry_config)(self._deliver)(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send mail '{subject}' to {to}: {e}")
            return False

        logger.info(f"Mail '{subject}' sent to {to}")
        return True
