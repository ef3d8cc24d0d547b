#!/usr/bin/env python3
import os
import sys
import argparse
from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional

from eth_account import Account
from web3 import Web3

import constants

class AppConfig(NamedTuple):
    """Typed configuration object."""
    rpc_url: str
    private_key: str
    arb_contract: str
    wwmm_contract: str
    profile: str
    single_shot: bool
    interval: float
    gas_limit: int
    min_balance: Decimal
    rpc_timeout: float
    receipt_timeout: float
    simulate: bool
    stats_every: int
    pool_labels: tuple[str, str]
    log_level: str


def _decimal_arg(value: str) -> Decimal:
    try:
        parsed = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid decimal value: {value!r}")
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be non-negative")
    return parsed


def _fail(message: str) -> None:
    print(f"{constants.C_RED}{message}{constants.C_RESET}")
    sys.exit(1)


def load_config(argv: Optional[list[str]] = None) -> AppConfig:
    """
    Parses command-line arguments and loads environment variables to create a configuration object.
    """
    parser = argparse.ArgumentParser(
        description="Poll the spread contract and trigger the keeper action when an arbitrage gap opens.",
        epilog="Example: ./main.py --profile keeper --interval 10"
    )
    parser.add_argument('--once', action='store_true', help='Run a single check-guard-execute cycle and exit (cron mode).')
    parser.add_argument('--profile', choices=constants.CONTRACT_PROFILES.keys(), default=constants.DEFAULT_PROFILE, help=f'Contract ABI profile (default: {constants.DEFAULT_PROFILE}).')
    parser.add_argument('--interval', type=float, default=constants.DEFAULT_POLL_INTERVAL, help=f'Seconds to wait between cycles (default: {constants.DEFAULT_POLL_INTERVAL:g}).')
    parser.add_argument('--gas-limit', type=int, help='Gas limit attached to the trigger transaction (default: per profile).')
    parser.add_argument('--min-balance', type=_decimal_arg, default=constants.DEFAULT_MIN_BALANCE_ETH, help=f'Minimum native balance in ETH required to trigger (default: {constants.DEFAULT_MIN_BALANCE_ETH}).')
    parser.add_argument('--rpc-timeout', type=float, default=constants.DEFAULT_RPC_TIMEOUT, help=f'Per-request RPC timeout in seconds (default: {constants.DEFAULT_RPC_TIMEOUT:g}).')
    parser.add_argument('--receipt-timeout', type=float, default=constants.DEFAULT_RECEIPT_TIMEOUT, help=f'Seconds to wait for a trigger receipt (default: {constants.DEFAULT_RECEIPT_TIMEOUT:g}).')
    parser.add_argument('--no-simulate', action='store_true', help='Skip the eth_call preflight before sending the trigger.')
    parser.add_argument('--stats-every', type=int, default=constants.DEFAULT_STATS_EVERY, help=f'Log a statistics summary every N cycles, 0 to disable (default: {constants.DEFAULT_STATS_EVERY}).')
    parser.add_argument('--pool-labels', nargs=2, metavar=('POOL_A', 'POOL_B'), default=list(constants.DEFAULT_POOL_LABELS), help='Labels used when logging the trade direction (default: WETH SOL).')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='INFO', help='Logging level (default: INFO).')

    args = parser.parse_args(argv)

    if args.interval <= 0:
        parser.error('--interval must be positive.')
    if args.gas_limit is not None and args.gas_limit <= 0:
        parser.error('--gas-limit must be positive.')

    # Load from environment
    rpc_url = os.environ.get(constants.RPC_URL_ENV_VAR) or constants.DEFAULT_RPC_URL
    private_key = os.environ.get(constants.PRIVATE_KEY_ENV_VAR) or os.environ.get(constants.LEGACY_PRIVATE_KEY_ENV_VAR)
    arb_contract = os.environ.get(constants.ARB_CONTRACT_ENV_VAR, '').strip()
    wwmm_contract = os.environ.get(constants.WWMM_CONTRACT_ENV_VAR, '').strip()

    if not private_key:
        _fail(f"Missing {constants.PRIVATE_KEY_ENV_VAR} in environment or .env")

    private_key = private_key.strip()
    try:
        Account.from_key(private_key)
    except Exception:
        _fail(f"{constants.PRIVATE_KEY_ENV_VAR} is not a valid private key")

    if not arb_contract or not wwmm_contract:
        _fail(f"Missing {constants.ARB_CONTRACT_ENV_VAR} or {constants.WWMM_CONTRACT_ENV_VAR} in environment or .env")

    for env_name, address in ((constants.ARB_CONTRACT_ENV_VAR, arb_contract), (constants.WWMM_CONTRACT_ENV_VAR, wwmm_contract)):
        if not Web3.is_address(address):
            _fail(f"{env_name} is not a valid address: {address}")

    profile = constants.CONTRACT_PROFILES[args.profile]

    return AppConfig(
        rpc_url=rpc_url,
        private_key=private_key,
        arb_contract=Web3.to_checksum_address(arb_contract),
        wwmm_contract=Web3.to_checksum_address(wwmm_contract),
        profile=args.profile,
        single_shot=args.once,
        interval=args.interval,
        gas_limit=args.gas_limit or profile['gas_limit'],
        min_balance=args.min_balance,
        rpc_timeout=args.rpc_timeout,
        receipt_timeout=args.receipt_timeout,
        simulate=not args.no_simulate,
        stats_every=max(0, args.stats_every),
        pool_labels=(args.pool_labels[0], args.pool_labels[1]),
        log_level=args.log_level,
    )
