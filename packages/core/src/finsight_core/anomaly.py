"""Outlier detection for expense transactions.

A transaction is anomalous when its absolute amount exceeds a multiple of
its category's mean absolute amount. The mean includes the candidate
itself, so a single huge charge raises its own threshold.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

import structlog

from .models import AnomalyFlag, TransactionRecord, TransactionType
from .money import round_money, sum_decimals

logger = structlog.get_logger()

DEFAULT_CATEGORY = "Other"


class AnomalyDetector:
    """
    Flag expenses far above their category average.

    Categories with fewer than ``min_category_size`` expenses are never
    flagged. Output keeps input order.
    """

    def __init__(
        self,
        multiplier: Decimal = Decimal("2.5"),
        min_category_size: int = 2,
        default_category: str = DEFAULT_CATEGORY,
    ):
        self.multiplier = Decimal(multiplier)
        self.min_category_size = min_category_size
        self.default_category = default_category

    def _category(self, record: TransactionRecord) -> str:
        return record.category_name or self.default_category

    def category_means(self, records: Iterable[TransactionRecord]) -> dict[str, Decimal]:
        """Mean absolute amount per eligible category."""
        amounts: dict[str, list[Decimal]] = defaultdict(list)
        for record in records:
            amounts[self._category(record)].append(record.abs_amount)
        return {
            name: sum_decimals(values) / len(values)
            for name, values in amounts.items()
            if len(values) >= self.min_category_size
        }

    def flag(self, records: Iterable[TransactionRecord]) -> list[AnomalyFlag]:
        """Anomalous expenses with the ratio of their amount to the category mean."""
        expenses = [r for r in records if r.type == TransactionType.EXPENSE]
        means = self.category_means(expenses)

        flags: list[AnomalyFlag] = []
        for record in expenses:
            category = self._category(record)
            mean = means.get(category)
            if not mean:
                continue
            if record.abs_amount > mean * self.multiplier:
                flags.append(
                    AnomalyFlag(
                        transaction=record,
                        category_name=category,
                        category_mean=round_money(mean),
                        deviation_ratio=round_money(record.abs_amount / mean),
                    )
                )

        logger.info(
            "anomalies_detected",
            expenses=len(expenses),
            categories=len(means),
            anomalies=len(flags),
        )
        return flags

    def detect(self, records: Iterable[TransactionRecord]) -> list[TransactionRecord]:
        """Anomalous expense records, in input order."""
        return [f.transaction for f in self.flag(records)]
