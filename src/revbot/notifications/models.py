"""Notification models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Notification:
    """An outbound chat message for one recipient.

    Built fresh for each webhook delivery and discarded once sent.

    Attributes:
        recipient_email: Email address of the person to message.
        body: Markdown message body.
    """

    recipient_email: str
    body: str
