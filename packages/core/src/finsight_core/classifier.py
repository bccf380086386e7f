"""Keyword-based transaction categorization.

The classifier is built once from an ordered keyword table and is immutable
afterwards, so a single instance can be shared across request handlers.
Matching is a plain substring test, so ``"car"`` also matches
``"card payment"``.
"""

from typing import Iterable, Optional

import structlog

from .exceptions import ConfigurationError
from .models import TransactionAnalysis

logger = structlog.get_logger()

DEFAULT_CATEGORY = "Other"

# Evaluated top to bottom; the first keyword contained in the description wins.
DEFAULT_KEYWORD_TABLE: tuple[tuple[str, str], ...] = (
    # Food & Dining
    ("restaurant", "Food & Dining"),
    ("mcdonalds", "Food & Dining"),
    ("burger", "Food & Dining"),
    ("pizza", "Food & Dining"),
    ("grocery", "Food & Dining"),
    ("supermarket", "Food & Dining"),
    ("cafe", "Food & Dining"),
    ("starbucks", "Food & Dining"),
    ("food", "Food & Dining"),
    # Transportation
    ("gas", "Transportation"),
    ("fuel", "Transportation"),
    ("uber", "Transportation"),
    ("taxi", "Transportation"),
    ("bus", "Transportation"),
    ("metro", "Transportation"),
    ("parking", "Transportation"),
    ("car", "Transportation"),
    # Shopping
    ("amazon", "Shopping"),
    ("ebay", "Shopping"),
    ("walmart", "Shopping"),
    ("target", "Shopping"),
    ("mall", "Shopping"),
    ("store", "Shopping"),
    ("clothing", "Shopping"),
    # Entertainment
    ("netflix", "Entertainment"),
    ("spotify", "Entertainment"),
    ("movie", "Entertainment"),
    ("cinema", "Entertainment"),
    ("game", "Entertainment"),
    ("subscription", "Entertainment"),
    # Bills & Utilities
    ("electric", "Bills & Utilities"),
    ("water", "Bills & Utilities"),
    ("internet", "Bills & Utilities"),
    ("phone", "Bills & Utilities"),
    ("utility", "Bills & Utilities"),
    ("bill", "Bills & Utilities"),
    # Healthcare
    ("pharmacy", "Healthcare"),
    ("doctor", "Healthcare"),
    ("hospital", "Healthcare"),
    ("medical", "Healthcare"),
    ("health", "Healthcare"),
    ("insurance", "Healthcare"),
    # Income sources
    ("salary", "Salary"),
    ("payroll", "Salary"),
    ("wages", "Salary"),
    ("employment", "Salary"),
    ("freelance", "Freelance Income"),
    ("consulting", "Freelance Income"),
    ("contractor", "Freelance Income"),
    ("gig", "Freelance Income"),
    ("dividend", "Investment Income"),
    ("investment", "Investment Income"),
    ("capital gains", "Investment Income"),
    ("stocks", "Investment Income"),
    ("mutual fund", "Investment Income"),
    ("interest", "Interest Income"),
    ("bonus", "Bonus Income"),
    ("commission", "Bonus Income"),
    ("incentive", "Bonus Income"),
    ("performance", "Bonus Income"),
    # Transfers
    ("transfer", "Transfer"),
    ("atm", "Transfer"),
    ("withdrawal", "Transfer"),
    ("deposit", "Transfer"),
)

DEFAULT_CATEGORY_COLORS: dict[str, str] = {
    "Food & Dining": "#FF6B6B",
    "Transportation": "#4ECDC4",
    "Shopping": "#45B7D1",
    "Entertainment": "#96CEB4",
    "Bills & Utilities": "#FFEAA7",
    "Healthcare": "#DDA0DD",
    "Education": "#98D8C8",
    "Travel": "#F7DC6F",
    "Salary": "#82E0AA",
    "Freelance Income": "#7DCEA0",
    "Investment Income": "#76D7C4",
    "Interest Income": "#85C1E9",
    "Bonus Income": "#F8C471",
    "Other Income": "#D5A6BD",
    "Transfer": "#AED6F1",
    "Other": "#D5DBDB",
}

STOP_WORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "had",
    "her", "was", "one", "our", "out", "day", "get", "has", "him", "his",
    "how", "its", "may", "new", "now", "old", "see", "two", "way", "who",
    "boy", "did", "man", "men", "use", "she", "run", "put", "set", "too",
    "yet", "with", "from", "this", "that",
})

MATCH_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.5


def extract_keywords(description: Optional[str], limit: int = 5) -> list[str]:
    """Pull up to ``limit`` significant words out of a description.

    Words of 3 characters or fewer and common stop words are dropped.
    """
    if not description:
        return []
    words = description.lower().split()
    keywords = [w for w in words if len(w) > 3 and w not in STOP_WORDS]
    return keywords[:limit]


class CategoryClassifier:
    """
    Map free-text transaction descriptions to category names.

    The keyword table is an ordered sequence of ``(keyword, category)``
    pairs. Keywords are normalized to lower case at construction and the
    first occurrence of a duplicate keyword is kept.
    """

    def __init__(
        self,
        keyword_table: Optional[Iterable[tuple[str, str]]] = None,
        default_category: str = DEFAULT_CATEGORY,
    ):
        """
        Build the classifier.

        Args:
            keyword_table: Ordered (keyword, category) pairs. Defaults to
                DEFAULT_KEYWORD_TABLE.
            default_category: Category returned when nothing matches.

        Raises:
            ConfigurationError: If a keyword or category is blank.
        """
        if not default_category or not default_category.strip():
            raise ConfigurationError(
                "Default category cannot be blank",
                config_key="default_category",
                expected="Non-empty category name",
            )
        self.default_category = default_category.strip()
        self._table = self._normalize_table(
            DEFAULT_KEYWORD_TABLE if keyword_table is None else keyword_table
        )
        logger.debug("classifier_initialized", keywords=len(self._table))

    @staticmethod
    def _normalize_table(table: Iterable[tuple[str, str]]) -> tuple[tuple[str, str], ...]:
        seen: set[str] = set()
        normalized: list[tuple[str, str]] = []
        for position, (keyword, category) in enumerate(table):
            key = (keyword or "").strip().lower()
            name = (category or "").strip()
            if not key or not name:
                raise ConfigurationError(
                    f"Keyword table entry {position} is blank",
                    config_key="keyword_table",
                    expected="Non-empty keyword and category",
                    actual=(keyword, category),
                )
            if key in seen:
                continue
            seen.add(key)
            normalized.append((key, name))
        return tuple(normalized)

    @property
    def keyword_table(self) -> tuple[tuple[str, str], ...]:
        return self._table

    @property
    def categories(self) -> list[str]:
        """Distinct categories in table order, default category last."""
        names = list(dict.fromkeys(category for _, category in self._table))
        if self.default_category not in names:
            names.append(self.default_category)
        return names

    def match(self, description: Optional[str]) -> Optional[str]:
        """Return the first matching category, or None."""
        if description is None:
            return None
        text = description.strip().lower()
        if not text:
            return None
        for keyword, category in self._table:
            if keyword in text:
                return category
        return None

    def classify(self, description: Optional[str]) -> str:
        """Category for a description, falling back to the default category."""
        return self.match(description) or self.default_category

    def analyze(self, description: Optional[str]) -> TransactionAnalysis:
        """Suggest a category for a description along with its keywords."""
        matched = self.match(description)
        return TransactionAnalysis(
            description=description,
            suggested_category=matched or self.default_category,
            confidence=MATCH_CONFIDENCE if matched else FALLBACK_CONFIDENCE,
            keywords=extract_keywords(description),
        )
