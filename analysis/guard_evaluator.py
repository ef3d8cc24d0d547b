#!/usr/bin/env python3
import logging
from decimal import Decimal

from analysis.models import GuardOutcome, GuardState

logger = logging.getLogger(__name__)

ACTION_DISABLED = 'action_disabled'
NOT_AUTHORIZED = 'not_authorized'
INSUFFICIENT_BALANCE = 'insufficient_balance'


class GuardEvaluator:
    """
    Runs the pre-trigger checks in a fixed order: action enabled, keeper
    authorization (only for profiles with an allow-list), then signer balance.
    The first failing check ends the evaluation; later checks are never queried.
    """

    def __init__(self, client, min_balance: Decimal):
        self.client = client
        self.min_balance = min_balance

    def evaluate(self) -> GuardOutcome:
        state = GuardState()

        state.action_enabled = self.client.is_action_enabled()
        if not state.action_enabled:
            logger.warning("Action contract is paused or disabled, skipping")
            return GuardOutcome(passed=False, state=state, reason=ACTION_DISABLED)

        if self.client.requires_keeper:
            state.caller_is_authorized = self.client.is_keeper()
            if not state.caller_is_authorized:
                logger.warning("Wallet %s is not an authorized keeper", self.client.signer_address)
                return GuardOutcome(passed=False, state=state, reason=NOT_AUTHORIZED)

        state.signer_balance = self.client.get_balance()
        if state.signer_balance < self.min_balance:
            logger.warning(
                "Low ETH balance: %s (minimum %s)",
                format_eth(state.signer_balance),
                format_eth(self.min_balance),
            )
            return GuardOutcome(passed=False, state=state, reason=INSUFFICIENT_BALANCE)

        return GuardOutcome(passed=True, state=state)


def format_eth(value: Decimal) -> str:
    return f"{value:.6f} ETH"
