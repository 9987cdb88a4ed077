"""Error hierarchy for the keeper."""
from __future__ import annotations

from decimal import Decimal


class KeeperError(Exception):
    """Base class for every error raised by the keeper."""


class ConfigurationError(KeeperError, ValueError):
    """Invalid or incomplete configuration; fatal at startup."""


class ChainError(KeeperError):
    """An LCD request failed on every configured endpoint."""


class SigningError(KeeperError):
    """The remote signer refused or failed to sign a transaction."""


class StateUnavailableError(KeeperError):
    """A read of on-chain state failed; the cycle is aborted."""


class ZeroBorrowLimitError(StateUnavailableError):
    """Borrow limit is zero, so LTV is undefined (no collateral posted)."""


class SubmissionError(KeeperError):
    """A transaction could not be built, signed, broadcast or confirmed."""


class InsufficientBalanceError(KeeperError):
    """Contraction needs more yield-token than the wallet holds."""

    def __init__(self, balance: Decimal, needed: Decimal, context: str = "") -> None:
        self.balance = balance
        self.needed = needed
        message = f"not enough aUST in wallet (balance {balance} / needed {needed})"
        super().__init__(f"{context}: {message}" if context else message)
