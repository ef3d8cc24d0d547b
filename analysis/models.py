#!/usr/bin/env python3
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

@dataclass(slots=True)
class OpportunitySnapshot:
    """Result of a single opportunity query; consumed or discarded within the cycle."""
    available: bool
    direction_flag: bool  # True when the first pool is the relatively expensive one
    gap_bps: Optional[int] = None
    optimal_amount: Optional[Decimal] = None

    def direction_label(self, pool_labels: Tuple[str, str]) -> str:
        first, second = pool_labels
        return f"{first}→{second}" if self.direction_flag else f"{second}→{first}"

@dataclass(slots=True)
class GuardState:
    """Live guard values; None means the check was skipped or never reached."""
    action_enabled: Optional[bool] = None
    caller_is_authorized: Optional[bool] = None
    signer_balance: Optional[Decimal] = None

@dataclass(slots=True)
class GuardOutcome:
    passed: bool
    state: GuardState
    reason: Optional[str] = None

@dataclass(slots=True)
class TriggerReceipt:
    tx_hash: str
    gas_used: int
    effective_gas_price: int
    status: int
    block_number: Optional[int] = None

@dataclass(slots=True)
class CycleResult:
    triggered: bool
    reason: str
    tx_hash: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_unexpected_error(self) -> bool:
        return self.reason == 'error'

@dataclass(slots=True)
class RunStatistics:
    """In-memory counters owned by the scheduler. Lost on restart."""
    cycles_run: int = 0
    total_triggers_sent: int = 0
    total_gas_spent_wei: int = 0
    last_trigger_timestamp: Optional[float] = None
    benign_rejections: int = 0
    unexpected_errors: int = 0
    guard_aborts: Counter = field(default_factory=Counter)

    def record_success(self, gas_used: int, effective_gas_price: int, timestamp: float) -> None:
        self.total_triggers_sent += 1
        self.total_gas_spent_wei += gas_used * effective_gas_price
        self.last_trigger_timestamp = timestamp

    def record_guard_abort(self, reason: str) -> None:
        self.guard_aborts[reason] += 1

    def to_dict(self) -> dict:
        return {
            'cycles_run': self.cycles_run,
            'total_triggers_sent': self.total_triggers_sent,
            'total_gas_spent_wei': self.total_gas_spent_wei,
            'last_trigger_timestamp': self.last_trigger_timestamp,
            'benign_rejections': self.benign_rejections,
            'unexpected_errors': self.unexpected_errors,
            'guard_aborts': dict(self.guard_aborts),
        }
