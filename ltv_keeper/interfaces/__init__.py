"""Protocol interfaces for the LTV keeper."""
from .chain import ChainClient
from .notifier import Notifier
from .protocol_adapter import LendingProtocol
from .state_reader import StateReader
from .submitter import MessageFactory, Signer, TransactionSubmitter

__all__ = [
    "ChainClient",
    "LendingProtocol",
    "MessageFactory",
    "Notifier",
    "Signer",
    "StateReader",
    "TransactionSubmitter",
]
