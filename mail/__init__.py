"""Mail delivery backends."""

from .abstract_mailer import AbstractMailer, OutgoingEmail
from .memory_mailer import MemoryMailer
from .smtp_mailer import SmtpMailer

__all__ = ["AbstractMailer", "MemoryMailer", "OutgoingEmail", "SmtpMailer"]
