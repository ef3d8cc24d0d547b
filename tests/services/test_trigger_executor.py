import pytest

from analysis.models import RunStatistics, TriggerReceipt
from services.chain_client import ChainCallError, ErrorKind
from services.trigger_executor import BENIGN, UNEXPECTED, TriggerExecutor, classify_failure

from conftest import TX_HASH, FakeChainClient


def test_classify_failure_uses_error_kind_first():
    assert classify_failure(ChainCallError(ErrorKind.OPPORTUNITY_CLOSED, 'whatever')) == BENIGN
    assert classify_failure(ChainCallError(ErrorKind.TIMEOUT, 'No arb opportunity')) == UNEXPECTED


def test_classify_failure_falls_back_to_message():
    assert classify_failure(ChainCallError(ErrorKind.REVERTED, 'reverted: Gap below threshold')) == BENIGN
    assert classify_failure(ValueError('No arb opportunity')) == BENIGN
    assert classify_failure(ValueError('nonce too low')) == UNEXPECTED


@pytest.mark.asyncio
async def test_execute_success_updates_statistics():
    client = FakeChainClient()
    stats = RunStatistics()
    executor = TriggerExecutor(client, gas_limit=1_200_000, receipt_timeout=5.0, simulate=True, clock=lambda: 42.0)

    result = await executor.execute(stats)

    assert result.triggered is True
    assert client.calls == ['simulate_trigger', 'send_trigger', 'wait_for_receipt']
    assert client.sent_gas_limits == [1_200_000]
    assert stats.total_triggers_sent == 1
    assert stats.total_gas_spent_wei == 700_000 * 2_000_000_000
    assert stats.last_trigger_timestamp == 42.0


@pytest.mark.asyncio
async def test_execute_never_raises_on_unexpected_error():
    client = FakeChainClient(send_error=RuntimeError('boom'))
    stats = RunStatistics()
    executor = TriggerExecutor(client, gas_limit=800_000, receipt_timeout=5.0, simulate=False)

    result = await executor.execute(stats)

    assert result.is_unexpected_error
    assert result.error == 'boom'
    assert stats.unexpected_errors == 1
    assert stats.benign_rejections == 0


@pytest.mark.asyncio
async def test_receipt_timeout_remembers_the_sent_hash():
    client = FakeChainClient(wait_error=ChainCallError(ErrorKind.TIMEOUT, 'receipt wait timed out'))
    stats = RunStatistics()
    executor = TriggerExecutor(client, gas_limit=800_000, receipt_timeout=1.0, simulate=False)

    result = await executor.execute(stats)

    assert result.reason == 'error'
    assert executor.pending_tx_hash == TX_HASH
    assert stats.unexpected_errors == 1


@pytest.mark.asyncio
async def test_resolve_pending_is_a_no_op_without_pending_trigger():
    client = FakeChainClient()
    executor = TriggerExecutor(client, gas_limit=800_000, receipt_timeout=1.0)

    assert await executor.resolve_pending(RunStatistics()) is None
    assert client.calls == []


@pytest.mark.asyncio
async def test_pending_trigger_reverted_on_chain_is_unexpected():
    reverted = TriggerReceipt(tx_hash=TX_HASH, gas_used=650_000, effective_gas_price=10, status=0)
    client = FakeChainClient(pending_receipts=[reverted])
    stats = RunStatistics()
    executor = TriggerExecutor(client, gas_limit=800_000, receipt_timeout=1.0)
    executor.pending_tx_hash = TX_HASH

    assert await executor.resolve_pending(stats) is None
    assert executor.pending_tx_hash is None
    assert stats.unexpected_errors == 1
    assert stats.total_triggers_sent == 0
