#!/usr/bin/env python3
import logging
from decimal import Decimal
from typing import Tuple

from analysis.models import OpportunitySnapshot

WEI_PER_TOKEN = Decimal(10 ** 18)

logger = logging.getLogger(__name__)


class OpportunityChecker:
    """Reads the spread contract and turns its answer into an OpportunitySnapshot."""

    def __init__(self, client, pool_labels: Tuple[str, str]):
        self.client = client
        self.pool_labels = pool_labels

    def check(self) -> OpportunitySnapshot:
        raw = self.client.get_opportunity()
        snapshot = OpportunitySnapshot(
            available=bool(raw.get('available')),
            direction_flag=bool(raw.get('direction_flag')),
            gap_bps=int(raw['gap_bps']) if raw.get('gap_bps') is not None else None,
            optimal_amount=Decimal(raw['optimal_amount']) / WEI_PER_TOKEN if raw.get('optimal_amount') is not None else None,
        )
        if snapshot.available:
            logger.info("ARB OPPORTUNITY: %s", self.describe(snapshot))
        return snapshot

    def describe(self, snapshot: OpportunitySnapshot) -> str:
        parts = [snapshot.direction_label(self.pool_labels)]
        if snapshot.gap_bps is not None:
            parts.append(f"gap {snapshot.gap_bps} bps ({snapshot.gap_bps / 100:.2f}%)")
        if snapshot.optimal_amount is not None:
            parts.append(f"{snapshot.optimal_amount.normalize():f} tokens")
        return ", ".join(parts)
