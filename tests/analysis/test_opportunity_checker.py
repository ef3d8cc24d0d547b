import logging
from decimal import Decimal

import pytest

from analysis.opportunity_checker import OpportunityChecker
from services.chain_client import ChainCallError, ErrorKind

from conftest import FakeChainClient


def test_unavailable_snapshot_logs_nothing(caplog):
    caplog.set_level(logging.DEBUG)
    client = FakeChainClient()

    snapshot = OpportunityChecker(client, ('WETH', 'SOL')).check()

    assert snapshot.available is False
    assert caplog.records == []


def test_keeper_profile_amount_is_scaled_from_wei(caplog):
    caplog.set_level(logging.INFO)
    client = FakeChainClient(opportunity={
        'available': True,
        'direction_flag': True,
        'optimal_amount': 1_500_000_000_000_000_000,
    })

    snapshot = OpportunityChecker(client, ('WETH', 'SOL')).check()

    assert snapshot.optimal_amount == Decimal('1.5')
    assert snapshot.gap_bps is None
    assert 'WETH→SOL, 1.5 tokens' in caplog.records[0].getMessage()


def test_sync_profile_gap_and_direction(caplog):
    caplog.set_level(logging.INFO)
    client = FakeChainClient(opportunity={'available': True, 'gap_bps': 250, 'direction_flag': False})

    snapshot = OpportunityChecker(client, ('WETH', 'SOL')).check()

    assert snapshot.gap_bps == 250
    assert snapshot.optimal_amount is None
    assert snapshot.direction_label(('WETH', 'SOL')) == 'SOL→WETH'
    assert 'gap 250 bps (2.50%)' in caplog.records[0].getMessage()


def test_rpc_error_propagates():
    client = FakeChainClient(opportunity_error=ChainCallError(ErrorKind.TIMEOUT, 'timed out'))

    with pytest.raises(ChainCallError):
        OpportunityChecker(client, ('WETH', 'SOL')).check()
