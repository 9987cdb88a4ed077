"""Chain client protocol — LCD (REST) abstraction."""
from __future__ import annotations

from typing import Any, Protocol


class ChainClient(Protocol):
    """Abstract interface for Terra LCD interactions."""

    async def query_contract(self, contract: str, query: dict[str, Any]) -> Any: ...

    async def broadcast_tx(self, tx_bytes: str) -> dict[str, Any]: ...

    async def get_tx(self, txhash: str) -> dict[str, Any] | None: ...
