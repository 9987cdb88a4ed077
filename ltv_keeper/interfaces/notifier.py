"""Notifier protocol — operator notification channel."""
from typing import Protocol


class Notifier(Protocol):
    """Sends keeper events to an operator.

    ``send_alert`` is for failures that need intervention, ``send_log`` for
    routine adjustment reports.
    """

    async def send_alert(self, message: str, subject: str = "") -> bool: ...

    async def send_log(self, message: str, silent: bool = True) -> bool: ...
