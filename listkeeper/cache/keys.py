"""Cache key namespace and lifetimes shared by the list cache accessors."""

# --- Lists ---
LISTS_CACHE_KEY = "lists_primary"
LISTS_FALLBACK_CACHE_KEY = "lists_fallback"
LISTS_CACHE_TTL = 24 * 3600  # 1 day
LISTS_FALLBACK_CACHE_TTL = 14 * 24 * 3600  # 2 weeks

# --- Subscriber counts ---
LIST_COUNTS_CACHE_KEY = "list_counts_primary"
LIST_COUNTS_FALLBACK_CACHE_KEY = "list_counts_fallback"
LIST_COUNTS_CACHE_TTL = 1200  # 20 minutes, overridable
LIST_COUNTS_FALLBACK_CACHE_TTL = 24 * 3600  # 1 day

ALL_CACHE_KEYS = (
    LISTS_CACHE_KEY,
    LISTS_FALLBACK_CACHE_KEY,
    LIST_COUNTS_CACHE_KEY,
    LIST_COUNTS_FALLBACK_CACHE_KEY,
)
