"""Ledger collaborator: durable account balances and value transfers."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Protocol

from sqlalchemy.orm import Session

from .errors import TransferRejected
from .models import LedgerAccount

logger = logging.getLogger(__name__)

ReceiverHook = Callable[[str, str, int], None]
"""Called as ``hook(source, destination, amount)`` when ``destination`` is credited."""


class Ledger(Protocol):
    """Interface the engine expects from the balance store.

    Implementations must perform every call inside the supplied session so that
    a failure anywhere in the enclosing operation undoes every transfer.
    """

    def balance_of(self, session: Session, account: str) -> int: ...

    def transfer(
        self, session: Session, source: str, destination: str, amount: int
    ) -> None: ...


class SqlLedger:
    """Ledger backed by the ``ledger_accounts`` table.

    Receiver hooks stand in for code that runs on the recipient's side of a
    transfer. A hook that raises makes the transfer fail with
    :class:`~dailydraw.errors.TransferRejected`.
    """

    def __init__(self) -> None:
        self._receiver_hooks: Dict[str, ReceiverHook] = {}

    def open_account(
        self, session: Session, name: str, *, accepts_transfers: Optional[bool] = None
    ) -> LedgerAccount:
        """Return the account called ``name``, creating it if necessary.

        ``accepts_transfers`` updates the flag when given and is left alone
        otherwise.
        """

        account = LedgerAccount.get_by_name(session, name)
        if account is None:
            account = LedgerAccount(name=name)
            session.add(account)
        if accepts_transfers is not None:
            account.accepts_transfers = accepts_transfers
        session.flush()
        return account

    def deposit(self, session: Session, name: str, amount: int) -> LedgerAccount:
        """Credit ``amount`` from outside the ledger (funding an account)."""

        if amount <= 0:
            raise ValueError("deposit amount must be positive")
        account = LedgerAccount.get_by_name(session, name, for_update=True)
        if account is None:
            account = self.open_account(session, name)
        account.balance += amount
        session.flush()
        return account

    def balance_of(self, session: Session, account: str) -> int:
        row = LedgerAccount.get_by_name(session, account)
        return row.balance if row is not None else 0

    def set_receiver_hook(self, account: str, hook: Optional[ReceiverHook]) -> None:
        """Install (or remove, with ``None``) the receiver hook of ``account``."""

        if hook is None:
            self._receiver_hooks.pop(account, None)
        else:
            self._receiver_hooks[account] = hook

    def transfer(self, session: Session, source: str, destination: str, amount: int) -> None:
        """Move ``amount`` from ``source`` to ``destination``.

        Raises
        ------
        TransferRejected
            If the source balance is insufficient, the destination refuses
            transfers, or the destination's receiver hook raises.
        """

        if amount <= 0:
            raise ValueError("transfer amount must be positive")
        if source == destination:
            raise ValueError("source and destination must differ")

        src = LedgerAccount.get_by_name(session, source, for_update=True)
        if src is None or src.balance < amount:
            available = src.balance if src is not None else 0
            raise TransferRejected(
                f"Insufficient balance in '{source}': {available} < {amount}"
            )
        dst = LedgerAccount.get_by_name(session, destination, for_update=True)
        if dst is None:
            dst = self.open_account(session, destination)
        if not dst.accepts_transfers:
            raise TransferRejected(f"Account '{destination}' does not accept transfers")

        src.balance -= amount
        dst.balance += amount
        session.flush()

        hook = self._receiver_hooks.get(destination)
        if hook is not None:
            try:
                hook(source, destination, amount)
            except Exception as exc:
                logger.warning(f"Receiver hook for '{destination}' rejected transfer: {exc}")
                raise TransferRejected(
                    f"Account '{destination}' rejected transfer: {exc}"
                ) from exc
        logger.debug(f"Transferred {amount} from '{source}' to '{destination}'")


__all__ = ["Ledger", "ReceiverHook", "SqlLedger"]
