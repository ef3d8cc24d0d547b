from decimal import Decimal

import pytest

from analysis.models import TriggerReceipt
from config import AppConfig
from services.chain_client import ChainCallError, ErrorKind

SIGNER = '0x1111111111111111111111111111111111111111'
ARB = '0x2222222222222222222222222222222222222222'
WWMM = '0x3333333333333333333333333333333333333333'
TX_HASH = '0x' + 'ab' * 32


class FakeChainClient:
    """Records every remote call in order; behaviour is set through attributes."""

    def __init__(
        self,
        *,
        opportunity=None,
        enabled=True,
        keeper=True,
        balance=Decimal('1'),
        requires_keeper=True,
        threshold=200,
        receipt=None,
        opportunity_error=None,
        simulate_error=None,
        send_error=None,
        wait_error=None,
        pending_receipts=None,
    ):
        self.opportunity = opportunity or {'available': False, 'direction_flag': False, 'optimal_amount': 0}
        self.enabled = enabled
        self.keeper = keeper
        self.balance = balance
        self.requires_keeper = requires_keeper
        self.threshold = threshold
        self.receipt = receipt or TriggerReceipt(
            tx_hash=TX_HASH, gas_used=700_000, effective_gas_price=2_000_000_000, status=1, block_number=10
        )
        self.opportunity_error = opportunity_error
        self.simulate_error = simulate_error
        self.send_error = send_error
        self.wait_error = wait_error
        # Receipts returned by successive get_receipt calls; None means still pending.
        self.pending_receipts = list(pending_receipts or [])
        self.signer_address = SIGNER
        self.calls = []
        self.sent_gas_limits = []

    def get_opportunity(self):
        self.calls.append('get_opportunity')
        if self.opportunity_error:
            raise self.opportunity_error
        return dict(self.opportunity)

    def get_gap_threshold_bps(self):
        self.calls.append('get_gap_threshold_bps')
        return self.threshold

    def is_action_enabled(self):
        self.calls.append('is_action_enabled')
        return self.enabled

    def is_keeper(self):
        self.calls.append('is_keeper')
        return self.keeper

    def get_balance(self):
        self.calls.append('get_balance')
        return self.balance

    def simulate_trigger(self):
        self.calls.append('simulate_trigger')
        if self.simulate_error:
            raise self.simulate_error

    def send_trigger(self, gas_limit):
        self.calls.append('send_trigger')
        self.sent_gas_limits.append(gas_limit)
        if self.send_error:
            raise self.send_error
        return self.receipt.tx_hash

    def wait_for_receipt(self, tx_hash, timeout):
        self.calls.append('wait_for_receipt')
        if self.wait_error:
            raise self.wait_error
        return self.receipt

    def get_receipt(self, tx_hash):
        self.calls.append('get_receipt')
        return self.pending_receipts.pop(0) if self.pending_receipts else None


def make_config(**overrides) -> AppConfig:
    values = dict(
        rpc_url='http://mock-rpc',
        private_key='0x' + '11' * 32,
        arb_contract=ARB,
        wwmm_contract=WWMM,
        profile='keeper',
        single_shot=False,
        interval=10.0,
        gas_limit=800_000,
        min_balance=Decimal('0.001'),
        rpc_timeout=30.0,
        receipt_timeout=180.0,
        simulate=False,
        stats_every=0,
        pool_labels=('WETH', 'SOL'),
        log_level='INFO',
    )
    values.update(overrides)
    return AppConfig(**values)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def gap_closed_error():
    return ChainCallError(ErrorKind.OPPORTUNITY_CLOSED, 'execution reverted: Gap below threshold')

