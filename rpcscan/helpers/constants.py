"""Common configuration constants used across the explorer."""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default RPC request timeout in seconds"""

CONNECTION_TIMEOUT = 3.0
"""Timeout for establishing connections"""

# Retry Configuration (caller side only, the gateway never retries)
MAX_RETRIES = 3
"""Default maximum number of retry attempts"""

RETRY_BASE_DELAY = 1.0
"""Base delay for exponential backoff in seconds"""

RETRY_MAX_DELAY = 30.0
"""Maximum delay between retries in seconds"""

# Concurrency Limits
RECEIPT_CONCURRENCY = 10
"""Maximum number of receipt lookups in flight per page"""

BLOCK_CONCURRENCY = 10
"""Maximum number of block lookups in flight for a block listing"""

# HTTP Connection Pooling
MAX_KEEPALIVE_CONNECTIONS = 5
"""Maximum number of keepalive connections in pool"""

MAX_CONNECTIONS = 20
"""Maximum total number of connections"""

# Page Sizes
DEFAULT_ITEMS_COUNT = 50
"""Default page size when the cursor does not carry items_count"""

TX_WINDOW_BLOCKS = 300
"""Maximum number of blocks walked by one transaction listing query"""

BLOCK_TXS_CAP = 400
"""Hard item cap for the transactions of a single block"""

TXS_VALIDATED_CAP = 100
"""Hard item cap for the general transaction listing"""

ADDRESS_TXS_CAP = 50
"""Hard item cap for the per-address transaction listing"""

HOMEPAGE_TXS_CAP = 6
"""Number of transactions shown on the homepage"""

HOMEPAGE_BLOCKS_COUNT = 5
"""Number of blocks shown on the homepage"""

STATS_SAMPLE_BLOCKS = 10
"""Number of blocks used to estimate the average block time"""

# Chain Constants
ADDRESS_HEX_LENGTH = 40
"""Hex characters in an address without the 0x prefix"""

HASH_HEX_LENGTH = 64
"""Hex characters in a 32-byte hash without the 0x prefix"""

RECEIPT_STATUS_SUCCESS = "0x1"
"""Receipt status value of a successful transaction"""

EMPTY_CODE = "0x"
"""eth_getCode result for an account without code"""


__all__ = [
    "ADDRESS_HEX_LENGTH",
    "ADDRESS_TXS_CAP",
    "BLOCK_CONCURRENCY",
    "BLOCK_TXS_CAP",
    "CONNECTION_TIMEOUT",
    "DEFAULT_ITEMS_COUNT",
    "DEFAULT_TIMEOUT",
    "EMPTY_CODE",
    "HASH_HEX_LENGTH",
    "HOMEPAGE_BLOCKS_COUNT",
    "HOMEPAGE_TXS_CAP",
    "MAX_CONNECTIONS",
    "MAX_KEEPALIVE_CONNECTIONS",
    "MAX_RETRIES",
    "RECEIPT_CONCURRENCY",
    "RECEIPT_STATUS_SUCCESS",
    "RETRY_BASE_DELAY",
    "RETRY_MAX_DELAY",
    "STATS_SAMPLE_BLOCKS",
    "TXS_VALIDATED_CAP",
    "TX_WINDOW_BLOCKS",
]
