"""In-memory mailer for local development and tests."""

from __future__ import annotations

import logging

from .abstract_mailer import AbstractMailer, OutgoingEmail

logger = logging.getLogger(__name__)


class MemoryMailer(AbstractMailer):
    """Keep sent messages in ``outbox`` instead of delivering them."""

    def __init__(self):
        self.outbox: list[OutgoingEmail] = []

    def send(self, message: OutgoingEmail) -> None:
        logger.info("Captured email to %s: %s", message.to, message.subject)
        self.outbox.append(message)

    def last_to(self, address: str) -> OutgoingEmail | None:
        """Return the most recent message sent to ``address``."""

        for message in reversed(self.outbox):
            if message.to == address:
                return message
        return None
