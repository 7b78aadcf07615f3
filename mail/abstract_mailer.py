"""Mail sender abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str


class AbstractMailer(ABC):
    """Interface for mail delivery backends."""

    @abstractmethod
    def send(self, message: OutgoingEmail) -> None:
        """Deliver a message or raise ``MailDeliveryError``."""
