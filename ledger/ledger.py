"""
Multi-Token Ledger - Ledger

This module provides the MultiTokenLedger, the caller-facing entry points
for balance queries, operator approvals, transfers, minting, burning and
the admin-controlled disclosure of token metadata.

Every mutating entry point takes the already-authenticated caller as its
first argument and runs all-or-nothing: ledger state and events are fully
committed before a recipient's received callback runs, and any failure,
including a rejected callback, rolls the whole call back.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .accounts import (
    NULL_ACCOUNT, as_list, normalize_account, require_account,
    require_same_length, validate_amount, validate_data, validate_token_id
)
from .approvals import ApprovalRegistry
from .balances import BalanceStore
from .concurrency import OperationGuard
from .disclosure import AdminGate, DisclosureStateMachine
from .events import EventLog
from .exceptions import InvalidAccount, InvalidRecipient, Unauthorized
from .journal import Journal
from .receivers import AcceptanceProtocol, ReceiverDirectory
from .schema import (
    ApprovalForAll, DisclosureRecord, IssuancePolicy, LedgerEvent,
    LedgerSettings, TransferBatchPublic, TransferSinglePublic
)


INTERFACE_ERC165 = 0x01ffc9a7
INTERFACE_MULTI_TOKEN = 0xd9b67a26
INTERFACE_METADATA_URI = 0x0e89341c

SUPPORTED_INTERFACES = frozenset({
    INTERFACE_ERC165,
    INTERFACE_MULTI_TOKEN,
    INTERFACE_METADATA_URI,
})


def _interface_to_int(interface_id: Union[int, str, bytes]) -> Optional[int]:
    if isinstance(interface_id, bytes):
        return int.from_bytes(interface_id, 'big') if len(interface_id) == 4 else None
    if isinstance(interface_id, str):
        try:
            return int(interface_id, 16)
        except ValueError:
            return None
    if isinstance(interface_id, int) and not isinstance(interface_id, bool):
        return interface_id
    return None


class MultiTokenLedger:
    """Multi-token balances with delegated transfers and two-tier metadata disclosure."""

    def __init__(self, settings: Optional[LedgerSettings] = None, **kwargs):
        """
        Initialize a ledger instance.

        Args:
            settings: Ledger settings; alternatively pass the settings fields
                as keyword arguments (admin, contract_uri, ...)
        """
        if settings is None:
            settings = LedgerSettings(**kwargs)

        self.logger = logging.getLogger(__name__)
        self.settings = settings

        self.balances = BalanceStore()
        self.approvals = ApprovalRegistry()
        self.disclosure = DisclosureStateMachine()
        self.admin_gate = AdminGate(settings.admin, self.disclosure)
        self.receivers = ReceiverDirectory()
        self.acceptance = AcceptanceProtocol(self.receivers)
        self.event_log = EventLog()
        self.journal = Journal(
            self.balances, self.approvals, self.disclosure,
            self.admin_gate, self.event_log
        )
        self._guard = OperationGuard("ledger", reject_reentry=settings.reentrancy_guard)

        self.logger.info(
            f"Ledger created (admin={settings.admin}, issuance={IssuancePolicy(settings.issuance_policy).value}, "
            f"reentrancy_guard={settings.reentrancy_guard})"
        )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MultiTokenLedger":
        """Build a ledger from a plain settings dictionary."""
        return cls(LedgerSettings(**config))

    @contextmanager
    def _mutation(self, operation: str):
        with self._guard.mutation(operation):
            with self.journal.frame(operation):
                yield

    def _resolve_caller(self, caller: str) -> str:
        return require_account(caller, Unauthorized, "Caller must not be the null identity")

    def _require_issuer(self, caller: str, action: str) -> None:
        if IssuancePolicy(self.settings.issuance_policy) == IssuancePolicy.ADMIN:
            self.admin_gate.require_admin(caller, action)

    def _require_burner(self, caller: str, account: str, action: str) -> None:
        """Admin policy: only the admin burns. Open policy: the holder or its approved operator."""
        if IssuancePolicy(self.settings.issuance_policy) == IssuancePolicy.ADMIN:
            self.admin_gate.require_admin(caller, action)
        elif caller != account and not self.approvals.is_approved_for_all(account, caller):
            raise Unauthorized("ERC1155: caller is not token owner or approved")

    # Collaborators

    def register_receiver(self, account: str, receiver: Any) -> None:
        """Mark an account as programmable with the given receiver object."""
        self.receivers.register(account, receiver)

    def unregister_receiver(self, account: str) -> None:
        self.receivers.unregister(account)

    def subscribe(self, callback: Callable[[LedgerEvent], None]) -> None:
        """Receive each event once the operation that emitted it commits."""
        self.event_log.subscribe(callback)

    @property
    def events(self) -> List[LedgerEvent]:
        with self._guard.reading():
            return self.event_log.events()

    # Queries

    def balance_of(self, account: str, token_id: int) -> int:
        with self._guard.reading():
            return self.balances.balance_of(account, token_id)

    def balance_of_batch(self, accounts: Sequence[str], token_ids: Sequence[int]) -> List[int]:
        with self._guard.reading():
            return self.balances.balance_of_batch(
                as_list(accounts, "accounts"), as_list(token_ids, "token_ids")
            )

    def total_supply(self, token_id: int) -> int:
        with self._guard.reading():
            return self.balances.total_supply(token_id)

    def exists(self, token_id: int) -> bool:
        with self._guard.reading():
            return self.balances.exists(token_id)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        with self._guard.reading():
            return self.approvals.is_approved_for_all(owner, operator)

    def is_locked(self, token_id: int) -> bool:
        with self._guard.reading():
            return self.disclosure.is_locked(token_id)

    def disclosure_record(self, token_id: int) -> DisclosureRecord:
        with self._guard.reading():
            return self.disclosure.get_record(token_id)

    def get_admin(self) -> str:
        with self._guard.reading():
            return self.admin_gate.get_admin()

    def uri(self, token_id: int) -> str:
        """Shared metadata URI; the token id is ignored."""
        with self._guard.reading():
            return self.settings.contract_uri

    def supports_interface(self, interface_id: Union[int, str, bytes]) -> bool:
        """ERC-165 style capability query."""
        return _interface_to_int(interface_id) in SUPPORTED_INTERFACES

    def holdings(self) -> List[Dict[str, Any]]:
        """All non-zero balances as rows of token_id, account, balance."""
        rows = []
        with self._guard.reading():
            for token_id in self.balances.token_ids():
                for account, amount in sorted(self.balances.holders(token_id).items()):
                    rows.append({'token_id': token_id, 'account': account, 'balance': amount})
        return rows

    # Approvals

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        """Grant or revoke operator authority over all of the caller's tokens."""
        with self._mutation("setApprovalForAll"):
            owner = self._resolve_caller(caller)
            operator = normalize_account(operator)
            approved = bool(approved)

            self.approvals.set_approval_for_all(owner, operator, approved)
            self.event_log.emit(ApprovalForAll(owner=owner, operator=operator, approved=approved))

    # Transfers

    def _require_owner_or_approved(self, caller: str, from_: str) -> None:
        if caller != from_ and not self.approvals.is_approved_for_all(from_, caller):
            raise Unauthorized("ERC1155: caller is not token owner or approved")

    def _transfer_one(self, operator: str, from_: str, to: str, token_id: int, amount: int) -> None:
        if to == NULL_ACCOUNT:
            raise InvalidRecipient("ERC1155: transfer to the zero address")

        self.balances.move(from_, to, token_id, amount)
        self.event_log.emit(self.disclosure.transfer_event(operator, from_, to, token_id, amount))

    def safe_transfer_from(
        self,
        caller: str,
        from_: str,
        to: str,
        token_id: int,
        amount: int,
        data: bytes = b""
    ) -> None:
        """Move `amount` of `token_id` from `from_` to `to`."""
        with self._mutation("safeTransferFrom"):
            operator = self._resolve_caller(caller)
            from_ = normalize_account(from_)
            to = normalize_account(to)
            token_id = validate_token_id(token_id)
            amount = validate_amount(amount)
            data = validate_data(data)

            self._require_owner_or_approved(operator, from_)
            self._transfer_one(operator, from_, to, token_id, amount)

            self.acceptance.check_single(operator, from_, to, token_id, amount, data)

    def safe_batch_transfer_from(
        self,
        caller: str,
        from_: str,
        to: str,
        token_ids: Sequence[int],
        amounts: Sequence[int],
        data: bytes = b""
    ) -> None:
        """Move several (token_id, amount) pairs in order; one event per pair."""
        with self._mutation("safeBatchTransferFrom"):
            operator = self._resolve_caller(caller)
            from_ = normalize_account(from_)
            to = normalize_account(to)
            token_ids = as_list(token_ids, "token_ids")
            amounts = as_list(amounts, "amounts")
            data = validate_data(data)

            require_same_length(token_ids, amounts)
            token_ids = [validate_token_id(t) for t in token_ids]
            amounts = [validate_amount(a) for a in amounts]

            self._require_owner_or_approved(operator, from_)
            for token_id, amount in zip(token_ids, amounts):
                self._transfer_one(operator, from_, to, token_id, amount)

            self.acceptance.check_batch(operator, from_, to, token_ids, amounts, data)

    # Issuance

    def mint(
        self,
        caller: str,
        account: str,
        token_id: int,
        amount: int,
        public_uri: str,
        private_uri: str,
        data: bytes = b""
    ) -> None:
        """Create `amount` new tokens for `account`; the token id becomes locked."""
        with self._mutation("mint"):
            operator = self._resolve_caller(caller)
            self._require_issuer(operator, "mint")
            account = require_account(account, InvalidRecipient, "ERC1155: mint to the zero address")
            token_id = validate_token_id(token_id)
            amount = validate_amount(amount)
            data = validate_data(data)

            self.disclosure.on_mint(token_id, str(public_uri), str(private_uri))
            self.balances.credit(account, token_id, amount)
            self.balances.increase_supply(token_id, amount)

            self.event_log.emit(TransferSinglePublic(
                operator=operator,
                from_=NULL_ACCOUNT,
                to=account,
                token_id=token_id,
                amount=amount,
                public_uri=str(public_uri),
            ))

            self.acceptance.check_single(operator, NULL_ACCOUNT, account, token_id, amount, data)

    def mint_batch(
        self,
        caller: str,
        to: str,
        token_ids: Sequence[int],
        amounts: Sequence[int],
        public_uris: Sequence[str],
        private_uris: Sequence[str],
        data: bytes = b""
    ) -> None:
        """Mint several token ids at once with a single batch event."""
        with self._mutation("mintBatch"):
            operator = self._resolve_caller(caller)
            self._require_issuer(operator, "mintBatch")
            to = require_account(to, InvalidRecipient, "ERC1155: mint to the zero address")
            token_ids = as_list(token_ids, "token_ids")
            amounts = as_list(amounts, "amounts")
            public_uris = [str(u) for u in as_list(public_uris, "public_uris")]
            private_uris = [str(u) for u in as_list(private_uris, "private_uris")]
            data = validate_data(data)

            require_same_length(token_ids, amounts)
            require_same_length(
                token_ids, public_uris, private_uris,
                message="ERC1155: ids and uris length mismatch"
            )
            token_ids = [validate_token_id(t) for t in token_ids]
            amounts = [validate_amount(a) for a in amounts]

            for token_id, amount, public_uri, private_uri in zip(token_ids, amounts, public_uris, private_uris):
                self.disclosure.on_mint(token_id, public_uri, private_uri)
                self.balances.credit(to, token_id, amount)
                self.balances.increase_supply(token_id, amount)

            self.event_log.emit(TransferBatchPublic(
                operator=operator,
                from_=NULL_ACCOUNT,
                to=to,
                token_ids=tuple(token_ids),
                amounts=tuple(amounts),
                public_uris=tuple(public_uris),
            ))

            self.acceptance.check_batch(operator, NULL_ACCOUNT, to, token_ids, amounts, data)

    def burn(self, caller: str, account: str, token_id: int, amount: int) -> None:
        """Destroy `amount` of `account`'s tokens; no recipient consent is needed."""
        with self._mutation("burn"):
            operator = self._resolve_caller(caller)
            account = require_account(account, InvalidAccount, "ERC1155: burn from the zero address")
            self._require_burner(operator, account, "burn")
            token_id = validate_token_id(token_id)
            amount = validate_amount(amount)

            self.balances.debit(account, token_id, amount)
            self.balances.decrease_supply(token_id, amount)

            self.event_log.emit(TransferSinglePublic(
                operator=operator,
                from_=account,
                to=NULL_ACCOUNT,
                token_id=token_id,
                amount=amount,
                public_uri="",
            ))

    def burn_batch(
        self,
        caller: str,
        account: str,
        token_ids: Sequence[int],
        amounts: Sequence[int]
    ) -> None:
        """Burn several token ids at once with a single batch event."""
        with self._mutation("burnBatch"):
            operator = self._resolve_caller(caller)
            account = require_account(account, InvalidAccount, "ERC1155: burn from the zero address")
            self._require_burner(operator, account, "burnBatch")
            token_ids = as_list(token_ids, "token_ids")
            amounts = as_list(amounts, "amounts")

            require_same_length(token_ids, amounts)
            token_ids = [validate_token_id(t) for t in token_ids]
            amounts = [validate_amount(a) for a in amounts]

            for token_id, amount in zip(token_ids, amounts):
                self.balances.debit(account, token_id, amount)
                self.balances.decrease_supply(token_id, amount)

            self.event_log.emit(TransferBatchPublic(
                operator=operator,
                from_=account,
                to=NULL_ACCOUNT,
                token_ids=tuple(token_ids),
                amounts=tuple(amounts),
                public_uris=tuple("" for _ in token_ids),
            ))

    # Admin

    def change_admin(self, caller: str, new_admin: str) -> None:
        """Replace the admin; only the current admin may do this."""
        with self._mutation("changeAdmin"):
            self.admin_gate.change_admin(caller, new_admin)

    def unlock(self, caller: str, token_id: int, creators: Sequence[str]) -> None:
        """Unlock a token id, naming its creators; admin only."""
        with self._mutation("unlock"):
            event = self.admin_gate.unlock(caller, token_id, as_list(creators, "creators"))
            self.event_log.emit(event)

    def get_metrics(self) -> Dict[str, Any]:
        """Operational counters for monitoring."""
        metrics = self._guard.get_metrics()
        metrics.update({
            'rollback_count': self.journal.rollback_count,
            'event_count': len(self.event_log),
            'token_count': len(self.balances.token_ids()),
            'programmable_accounts': len(self.receivers.accounts()),
        })
        return metrics
