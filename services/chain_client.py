"""Thin web3.py wrapper over the spread and action contracts."""
from __future__ import annotations

import enum
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, TypeVar

from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout as RequestsTimeout
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, TransactionNotFound, Web3Exception

import constants
from analysis.models import TriggerReceipt

T = TypeVar("T")


class ErrorKind(enum.Enum):
    OPPORTUNITY_CLOSED = "opportunity_closed"
    REVERTED = "reverted"
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    UNKNOWN = "unknown"


class ChainCallError(Exception):
    """A remote call failed; ``kind`` says how."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


def matches_benign_reason(message: Optional[str]) -> bool:
    if not message:
        return False
    return any(pattern in message for pattern in constants.BENIGN_REVERT_PATTERNS)


def _revert_kind(message: str) -> ErrorKind:
    return ErrorKind.OPPORTUNITY_CLOSED if matches_benign_reason(message) else ErrorKind.REVERTED


class ChainClient:
    """Read and write access to the two contracts for a single signing account."""

    def __init__(self, web3: Any, account: Any, *, arb_contract: str, wwmm_contract: str, profile: str) -> None:
        self.web3 = web3
        self.account = account
        self.profile: Dict[str, Any] = constants.CONTRACT_PROFILES[profile]
        self.arb_contract = web3.eth.contract(address=arb_contract, abi=self.profile['spread_abi'])
        self.wwmm_contract = web3.eth.contract(address=wwmm_contract, abi=self.profile['action_abi'])

    @classmethod
    def from_config(cls, config) -> "ChainClient":
        web3 = Web3(Web3.HTTPProvider(
            config.rpc_url,
            request_kwargs={"timeout": config.rpc_timeout},
            exception_retry_configuration=None,
        ))
        if not web3.is_connected():
            raise RuntimeError(f"Could not connect to RPC URL: {config.rpc_url}")
        account = web3.eth.account.from_key(config.private_key)
        return cls(
            web3,
            account,
            arb_contract=config.arb_contract,
            wwmm_contract=config.wwmm_contract,
            profile=config.profile,
        )

    @property
    def signer_address(self) -> str:
        return self.account.address

    @property
    def requires_keeper(self) -> bool:
        return self.profile['keeper_fn'] is not None

    def get_opportunity(self) -> Dict[str, Any]:
        """Raw opportunity tuple keyed by the profile's field names."""
        fn = getattr(self.arb_contract.functions, self.profile['opportunity_fn'])
        result = self._guarded("opportunity query", lambda: fn().call())
        return dict(zip(self.profile['opportunity_fields'], result))

    def get_gap_threshold_bps(self) -> int:
        fn = getattr(self.arb_contract.functions, self.profile['threshold_fn'])
        return int(self._guarded("threshold query", lambda: fn().call()))

    def is_action_enabled(self) -> bool:
        fn = getattr(self.wwmm_contract.functions, self.profile['enabled_fn'])
        flag = bool(self._guarded("enabled query", lambda: fn().call()))
        return not flag if self.profile['enabled_inverted'] else flag

    def is_keeper(self) -> bool:
        if not self.requires_keeper:
            return True
        fn = getattr(self.wwmm_contract.functions, self.profile['keeper_fn'])
        return bool(self._guarded("keeper query", lambda: fn(self.signer_address).call()))

    def get_balance(self) -> Decimal:
        """Signer balance in ETH."""
        balance_wei = self._guarded("balance query", lambda: self.web3.eth.get_balance(self.signer_address))
        return Decimal(balance_wei) / Decimal(10 ** 18)

    def simulate_trigger(self) -> None:
        """eth_call the trigger so a rejection surfaces with its revert reason and no gas spent."""
        fn = self._trigger_fn()
        self._guarded("trigger simulation", lambda: fn().call({'from': self.signer_address}))

    def send_trigger(self, gas_limit: int) -> str:
        fn = self._trigger_fn()

        def _send() -> str:
            tx = fn().build_transaction({
                'from': self.signer_address,
                'nonce': self.web3.eth.get_transaction_count(self.signer_address, 'pending'),
                'gas': gas_limit,
            })
            signed = self.account.sign_transaction(tx)
            tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
            return Web3.to_hex(tx_hash)

        return self._guarded("trigger submission", _send)

    def wait_for_receipt(self, tx_hash: str, timeout: float) -> TriggerReceipt:
        receipt = self._guarded(
            "receipt wait",
            lambda: self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout),
        )
        return self._to_receipt(tx_hash, receipt)

    def get_receipt(self, tx_hash: str) -> Optional[TriggerReceipt]:
        """Receipt of a previously sent trigger, or None while it is still pending."""
        def _lookup():
            try:
                return self.web3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                return None

        receipt = self._guarded("receipt lookup", _lookup)
        return self._to_receipt(tx_hash, receipt) if receipt is not None else None

    @staticmethod
    def _to_receipt(tx_hash: str, receipt) -> TriggerReceipt:
        return TriggerReceipt(
            tx_hash=tx_hash,
            gas_used=int(receipt['gasUsed']),
            effective_gas_price=int(receipt.get('effectiveGasPrice', 0) or 0),
            status=int(receipt.get('status', 1)),
            block_number=receipt.get('blockNumber'),
        )

    def _trigger_fn(self):
        return getattr(self.wwmm_contract.functions, self.profile['trigger_fn'])

    def _guarded(self, description: str, call: Callable[[], T]) -> T:
        try:
            return call()
        except ContractLogicError as exc:
            message = getattr(exc, 'message', None) or str(exc)
            raise ChainCallError(_revert_kind(message), message) from exc
        except (TimeExhausted, RequestsTimeout) as exc:
            raise ChainCallError(ErrorKind.TIMEOUT, f"{description} timed out: {exc}") from exc
        except RequestsConnectionError as exc:
            raise ChainCallError(ErrorKind.CONNECTION, f"{description} failed to connect: {exc}") from exc
        except Web3Exception as exc:
            message = str(exc)
            kind = ErrorKind.OPPORTUNITY_CLOSED if matches_benign_reason(message) else ErrorKind.UNKNOWN
            raise ChainCallError(kind, message) from exc
