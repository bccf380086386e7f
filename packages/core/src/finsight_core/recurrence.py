"""Recurring transaction detection.

Transactions are clustered by a normalized merchant key and a coarse amount
band. A cluster becomes a RecurringPattern only when its day gaps are
steady, its mean gap falls in a known cadence and its amounts stay close
to their average. Clusters failing any check are dropped whole.
"""

import re
from collections import defaultdict
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

import structlog

from .exceptions import ValidationError
from .models import Frequency, RecurringPattern, TransactionRecord
from .money import round_money, sum_decimals

logger = structlog.get_logger()

UNCATEGORIZED = "Uncategorized"
MERCHANT_KEY_WORDS = 3

# Tokens that describe the transfer mechanism rather than the payee.
NOISE_TOKEN = re.compile(r"^(payment|transfer|deposit|withdrawal|txn|ref|\d+)$")

# Upper bounds of the amount bands; the last band is open-ended.
AMOUNT_BAND_LIMITS = (Decimal("50"), Decimal("100"), Decimal("500"), Decimal("1000"))

# Inclusive mean-gap ranges in days.
CADENCES: tuple[tuple[Frequency, int, int], ...] = (
    (Frequency.WEEKLY, 6, 8),
    (Frequency.MONTHLY, 28, 35),
    (Frequency.QUARTERLY, 84, 95),
)


def merchant_key(description: Optional[str]) -> str:
    """
    Normalize a description into a short payee key.

    Takes up to three leading words of the lower-cased description,
    skipping mechanism words and pure digits. Falls back to the whole
    lower-cased description when every word is skipped.

    Example:
        >>> merchant_key("NETFLIX.COM 866-579 Payment 0042")
        'netflix.com 866-579'
    """
    text = (description or "").strip().lower()
    words = [w for w in text.split() if not NOISE_TOKEN.match(w)]
    key = " ".join(words[:MERCHANT_KEY_WORDS])
    return key or text


def amount_band(amount: Decimal) -> int:
    """Index of the amount band containing ``abs(amount)``.

    Bands: [0, 50), [50, 100), [100, 500), [500, 1000), [1000, inf).
    """
    magnitude = abs(amount)
    for index, limit in enumerate(AMOUNT_BAND_LIMITS):
        if magnitude < limit:
            return index
    return len(AMOUNT_BAND_LIMITS)


def classify_interval(mean_gap: Decimal) -> Optional[Frequency]:
    """Cadence for a mean gap in days, or None if it is not a known cadence."""
    for frequency, low, high in CADENCES:
        if low <= mean_gap <= high:
            return frequency
    return None


class RecurrencePatternDetector:
    """
    Find subscriptions, salaries and other repeating transactions.

    The caller supplies the analysis window (normally the trailing twelve
    months). Output is sorted by occurrence count, most frequent first.
    """

    def __init__(
        self,
        min_occurrences: int = 3,
        interval_tolerance: Decimal = Decimal("0.30"),
        amount_tolerance: Decimal = Decimal("0.20"),
    ):
        """
        Args:
            min_occurrences: Smallest cluster considered a pattern.
            interval_tolerance: Maximum relative deviation of each gap from
                the mean gap.
            amount_tolerance: Maximum relative deviation of each amount
                from the cluster average.

        Raises:
            ValidationError: If min_occurrences is below 2.
        """
        if min_occurrences < 2:
            raise ValidationError(
                "min_occurrences must be at least 2",
                field="min_occurrences",
                value=min_occurrences,
                constraint=">= 2",
            )
        self.min_occurrences = min_occurrences
        self.interval_tolerance = Decimal(interval_tolerance)
        self.amount_tolerance = Decimal(amount_tolerance)

    def group(
        self, records: Iterable[TransactionRecord]
    ) -> dict[tuple[str, int], list[TransactionRecord]]:
        """Bucket records by (merchant key, amount band), preserving input order."""
        buckets: dict[tuple[str, int], list[TransactionRecord]] = defaultdict(list)
        for record in records:
            buckets[(merchant_key(record.description), amount_band(record.amount))].append(record)
        return buckets

    def detect(self, records: Iterable[TransactionRecord]) -> list[RecurringPattern]:
        """Detect recurring patterns among ``records``."""
        buckets = self.group(records)
        patterns: list[RecurringPattern] = []
        rejected = 0

        for (key, _band), items in buckets.items():
            if len(items) < self.min_occurrences:
                continue
            pattern = self._evaluate(key, items)
            if pattern is None:
                rejected += 1
            else:
                patterns.append(pattern)

        patterns.sort(key=lambda p: p.occurrence_count, reverse=True)
        logger.info(
            "recurring_patterns_detected",
            buckets=len(buckets),
            patterns=len(patterns),
            rejected=rejected,
        )
        return patterns

    def _evaluate(self, key: str, items: list[TransactionRecord]) -> Optional[RecurringPattern]:
        ordered = sorted(items, key=lambda r: r.date)
        gaps = [
            Decimal((later.date - earlier.date).days)
            for earlier, later in zip(ordered, ordered[1:])
        ]
        mean_gap = sum_decimals(gaps) / len(gaps)

        if not self._within_tolerance(gaps, mean_gap, self.interval_tolerance):
            logger.debug("recurring_bucket_irregular_interval", merchant=key, mean_gap=str(mean_gap))
            return None

        frequency = classify_interval(mean_gap)
        if frequency is None:
            logger.debug("recurring_bucket_unknown_cadence", merchant=key, mean_gap=str(mean_gap))
            return None

        average = round_money(sum_decimals(r.amount for r in ordered) / len(ordered))
        if not self._within_tolerance([r.amount for r in ordered], average, self.amount_tolerance):
            logger.debug("recurring_bucket_inconsistent_amount", merchant=key, average=str(average))
            return None

        interval_days = int(mean_gap.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        first, last = ordered[0], ordered[-1]
        return RecurringPattern(
            merchant_key=key,
            representative_description=first.description or key,
            average_amount=average,
            frequency=frequency,
            interval_days=interval_days,
            occurrence_count=len(ordered),
            first_date=first.date,
            last_date=last.date,
            next_expected_date=last.date + timedelta(days=interval_days),
            all_dates=[r.date for r in ordered],
            category_name=first.category_name or UNCATEGORIZED,
        )

    @staticmethod
    def _within_tolerance(values: list[Decimal], center: Decimal, tolerance: Decimal) -> bool:
        """True if every value deviates from ``center`` by at most ``tolerance`` (relative).

        A zero center can't anchor a relative deviation and counts as a failure.
        """
        if center == 0:
            return False
        scale = abs(center)
        return all(abs(value - center) / scale <= tolerance for value in values)
