"""Authentication services."""

from .account_guard import AccountGuard
from .single_use_tokens import SingleUseTokens
from .tokens import TokenIssuer, TokenPair

__all__ = ["AccountGuard", "SingleUseTokens", "TokenIssuer", "TokenPair"]
