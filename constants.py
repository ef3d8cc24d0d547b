#!/usr/bin/env python3
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

# --- ANSI Color Codes ---
C_GREEN = '\033[92m'
C_RED = '\033[91m'
C_YELLOW = '\033[93m'
C_BLUE = '\033[94m'
C_RESET = '\033[0m'

# --- Environment Variable Names ---
RPC_URL_ENV_VAR = 'RPC_URL'
PRIVATE_KEY_ENV_VAR = 'KEEPER_PRIVATE_KEY'
LEGACY_PRIVATE_KEY_ENV_VAR = 'RAILWAY_PRIVATE_KEY'
ARB_CONTRACT_ENV_VAR = 'ARB_CONTRACT'
WWMM_CONTRACT_ENV_VAR = 'WWMM_CONTRACT'

# --- Runtime Defaults ---
DEFAULT_RPC_URL = 'https://mainnet.base.org'
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_MIN_BALANCE_ETH = Decimal('0.001')
DEFAULT_RPC_TIMEOUT = 30.0
DEFAULT_RECEIPT_TIMEOUT = 180.0
DEFAULT_STATS_EVERY = 360
DEFAULT_POOL_LABELS: Tuple[str, str] = ('WETH', 'SOL')
DEFAULT_PROFILE = 'keeper'

# Revert reasons the action contract emits when the gap closed between check and trigger.
BENIGN_REVERT_PATTERNS: Tuple[str, ...] = (
    'No arb opportunity',
    'Gap below threshold',
)


def _fn(
    name: str,
    inputs: Optional[List[str]] = None,
    outputs: Optional[List[Tuple[str, str]]] = None,
    mutability: str = 'view',
) -> Dict[str, Any]:
    return {
        'inputs': [{'name': '', 'type': t} for t in inputs or []],
        'name': name,
        'outputs': [{'name': n, 'type': t} for n, t in outputs or []],
        'stateMutability': mutability,
        'type': 'function',
    }


# --- Contract Profiles ---
# Two deployed ABI shapes. ``opportunity_fields`` names the tuple returned by
# the opportunity call in order; ``enabled_inverted`` means the flag is a pause flag.
CONTRACT_PROFILES: Dict[str, Dict[str, Any]] = {
    'keeper': {
        'opportunity_fn': 'getArbInfo',
        'opportunity_fields': ('available', 'direction_flag', 'optimal_amount'),
        'threshold_fn': 'gapThresholdBps',
        'enabled_fn': 'paused',
        'enabled_inverted': True,
        'keeper_fn': 'keepers',
        'trigger_fn': 'keeperTrigger',
        'gas_limit': 800_000,
        'spread_abi': [
            _fn('getArbInfo', outputs=[
                ('available', 'bool'),
                ('wethPoolExpensive', 'bool'),
                ('optimalAmount', 'uint256'),
            ]),
            _fn('gapThresholdBps', outputs=[('', 'uint256')]),
        ],
        'action_abi': [
            _fn('keeperTrigger', mutability='nonpayable'),
            _fn('keepers', inputs=['address'], outputs=[('', 'bool')]),
            _fn('paused', outputs=[('', 'bool')]),
        ],
    },
    'sync': {
        'opportunity_fn': 'checkArbOpportunity',
        'opportunity_fields': ('available', 'gap_bps', 'direction_flag'),
        'threshold_fn': 'gapThresholdBps',
        'enabled_fn': 'syncEnabled',
        'enabled_inverted': False,
        'keeper_fn': None,
        'trigger_fn': 'forceSync',
        'gas_limit': 1_200_000,
        'spread_abi': [
            _fn('checkArbOpportunity', outputs=[
                ('available', 'bool'),
                ('gapBps', 'uint256'),
                ('poolAExpensive', 'bool'),
            ]),
            _fn('gapThresholdBps', outputs=[('', 'uint256')]),
        ],
        'action_abi': [
            _fn('forceSync', mutability='nonpayable'),
            _fn('syncEnabled', outputs=[('', 'bool')]),
        ],
    },
}
