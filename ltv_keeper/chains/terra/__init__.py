"""Terra LCD client, remote signer and transaction submitter."""
from .client import TerraClient
from .signer import RemoteSigner
from .transaction import TerraTransactionSubmitter

__all__ = ["TerraClient", "RemoteSigner", "TerraTransactionSubmitter"]
