"""Generation and retry configuration.

These settings control how backend calls are retried and how
implementation summaries are named.
"""

# =============================================================================
# Retry Policy
# =============================================================================
# A backend call is attempted at most DEFAULT_MAX_ATTEMPTS times. The delay
# before attempt n+1 is DEFAULT_RETRY_DELAY * DEFAULT_BACKOFF_FACTOR ** (n-1).
# A backoff factor of 1.0 gives a fixed delay.

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_BACKOFF_FACTOR = 2.0

# =============================================================================
# Synthesis
# =============================================================================
# Lower temperature keeps documentation focused and repeatable.

SYNTHESIS_TEMPERATURE = 0.3

# =============================================================================
# Implementation Summaries
# =============================================================================
# Summaries recorded without an explicit name are called
# "implementation-<date>". Structures beyond the import cap contribute no
# further integration points.

SUMMARY_NAME_PREFIX = "implementation"
MAX_IMPORTS_PER_FILE = 10
