"""Centralized estimator constants.

This module is the SINGLE SOURCE OF TRUTH for the windows, thresholds and
penalties used by the trend estimators and the verdict normalizer.
"""

from __future__ import annotations

# ── Sample windows ──────────────────────────────────────────────────────
# The estimator compares the last RECENT_WINDOW samples against the
# PRIOR_WINDOW samples that precede them.
RECENT_WINDOW: int = 6
PRIOR_WINDOW: int = 6

# Hard floor: below this the estimator refuses to run.
MIN_SAMPLES: int = 6
# Below this the sparse-data penalty applies.
FULL_HISTORY_SAMPLES: int = RECENT_WINDOW + PRIOR_WINDOW

# ── Direction classification ────────────────────────────────────────────
# Percent change between the two windows beyond which a trend is up/down.
DIRECTION_THRESHOLD_PCT: float = 10.0

# ── Growth potential ────────────────────────────────────────────────────
GROWTH_BASELINE: float = 50.0
GROWTH_MIN: float = 0.0
GROWTH_MAX: float = 100.0

# Coefficient of variation above which growth is capped.
VOLATILITY_THRESHOLD: float = 0.5
VOLATILE_GROWTH_CAP: float = 50.0

# ── Confidence ──────────────────────────────────────────────────────────
BASELINE_CONFIDENCE: float = 0.7
SPARSE_DATA_PENALTY: float = 0.7
CONFIDENCE_MIN: float = 0.0
CONFIDENCE_MAX: float = 1.0

# Output rounding
GROWTH_DECIMALS: int = 2
CONFIDENCE_DECIMALS: int = 4

# ── Seasonality ─────────────────────────────────────────────────────────
# A calendar month is a seasonal peak when its average volume reaches
# this multiple of the overall mean.
SEASONAL_PEAK_RATIO: float = 1.3

MONTH_TAGS: list[str] = [
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
]

# ── Strategies ──────────────────────────────────────────────────────────
STRATEGY_STATISTICAL: str = "statistical"
STRATEGY_EXTERNAL: str = "external"
STRATEGIES: frozenset[str] = frozenset({STRATEGY_STATISTICAL, STRATEGY_EXTERNAL})
