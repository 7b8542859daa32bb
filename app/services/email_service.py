"""
Email delivery for notifications.

Templates live in app/templates/emails. Sending is disabled unless SMTP is
configured; every failure is logged and reported as False, never raised.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid
from pathlib import Path
from typing import Any

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.config import settings

logger = logging.getLogger(__name__)

TEMPLATES_PATH = Path(__file__).parent.parent / "templates" / "emails"


class EmailService:
    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USER
        self.from_name = settings.SMTP_FROM_NAME
        self.enabled = settings.SMTP_ENABLED

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_PATH)),
            autoescape=select_autoescape(["html", "xml"]),
            enable_async=True,
        )

    def is_configured(self) -> bool:
        return bool(self.enabled and self.smtp_host and self.smtp_user and self.smtp_password)

    async def render(self, template_name: str, context: dict[str, Any]) -> str:
        template = self.jinja_env.get_template(template_name)
        return await template.render_async(
            app_name=settings.SMTP_FROM_NAME,
            frontend_url=settings.FRONTEND_URL,
            **context,
        )

    async def send(self, to_email: str, subject: str, html_content: str) -> bool:
        if not self.is_configured():
            logger.info("Email to %s not sent: SMTP disabled", to_email)
            return False

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        message["Date"] = formatdate(localtime=True)
        message["Message-ID"] = make_msgid()
        message.attach(MIMEText(html_content, "html", "utf-8"))

        # 465 is implicit TLS, anything else upgrades with STARTTLS
        tls_options = {"use_tls": True} if self.smtp_port == 465 else {"start_tls": True}

        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                **tls_options,
            )
        except aiosmtplib.SMTPException as e:
            logger.error("SMTP error sending to %s: %s", to_email, e)
            return False
        except OSError as e:
            logger.error("Could not reach SMTP server %s: %s", self.smtp_host, e)
            return False

        logger.info("Email sent to %s: %s", to_email, subject)
        return True

    async def send_interest_received(
        self, to_email: str, sender_name: str, message: str | None
    ) -> bool:
        html = await self.render(
            "interest_received.html",
            {"sender_name": sender_name, "message": message},
        )
        return await self.send(to_email, "New interest received", html)

    async def send_interest_responded(
        self, to_email: str, responder_name: str, status: str
    ) -> bool:
        html = await self.render(
            "interest_responded.html",
            {"responder_name": responder_name, "status": status},
        )
        return await self.send(to_email, f"Your interest was {status}", html)


email_service = EmailService()
