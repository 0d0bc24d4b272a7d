"""Outgoing email notifications."""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from fastapi_mail import FastMail, MessageSchema

from .core import get_mail_config

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    """Aggregate outcome of sending one message to several addresses."""

    attempted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def sent_count(self) -> int:
        return len(self.attempted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


def build_welcome_message(email: str, display_name: str) -> MessageSchema:
    """
    Build the welcome message for one recipient.

    Args:
        email (str): Recipient email address.
        display_name (str): Name used in the greeting.

    Returns:
        MessageSchema: Message ready to send.
    """
    return MessageSchema(
        subject="Welcome!",
        recipients=[email],
        body=f"""
        <html>
          <body>
            <h1>Welcome, {display_name}!</h1>
            <p>Thank you for registering in our system. We are glad to welcome you!</p>
            <p>If you have any questions, please do not hesitate to contact our support service.</p>
            <p><small>This is an automatic email, please do not reply to it.</small></p>
          </body>
        </html>
        """,
        subtype="html",
    )


async def send_welcome_email(email: str, display_name: str) -> bool:
    """
    Send the welcome email to a single address.

    Delivery failures are logged and reported through the return value
    instead of being raised.

    Args:
        email (str): Recipient email address.
        display_name (str): Name used in the greeting.

    Returns:
        bool: ``True`` if the message was handed to the mail server.
    """
    message = build_welcome_message(email, display_name)
    fm = FastMail(get_mail_config())
    try:
        await fm.send_message(message)
    except Exception:
        logger.exception("Failed to send welcome email to %s", email)
        return False
    return True


async def dispatch_welcome_emails(
    addresses: Sequence[str], display_name: str
) -> DispatchReport:
    """
    Send the welcome email to each address in turn.

    Args:
        addresses (Sequence[str]): Deduplicated recipient addresses.
        display_name (str): Name used in the greeting.

    Returns:
        DispatchReport: Every attempted address and the ones that failed.
    """
    report = DispatchReport()
    for address in addresses:
        report.attempted.append(address)
        if not await send_welcome_email(address, display_name):
            report.failed.append(address)

    logger.info(
        "Welcome email dispatched to %d addresses (%d failed)",
        report.sent_count,
        report.failed_count,
    )
    return report
