"""
Shared constants across feature extraction, scoring and training
"""
from datetime import timedelta

# Known vocabularies (index 0 is reserved for unknown values)
KNOWN_TRANSACTION_TYPES = [
    'unknown',
    'transfer',
    'payment',
    'withdrawal',
    'deposit',
    'card',
    'refund'
]

KNOWN_CURRENCIES = [
    'unknown',
    'USD',
    'EUR',
    'GBP',
    'JPY',
    'CHF',
    'CAD'
]

# Aggregation windows
WINDOW_24H = timedelta(hours=24)
WINDOW_7D = timedelta(days=7)
NETWORK_WINDOW = timedelta(days=30)
DEFAULT_RETENTION = timedelta(days=30)

# Time windows
NIGHT_HOUR_START = 22
NIGHT_HOUR_END = 6

# Rule thresholds
HIGH_AMOUNT_THRESHOLD = 10_000
VERY_HIGH_AMOUNT_THRESHOLD = 50_000
HIGH_FREQUENCY_THRESHOLD = 10
HIGH_VELOCITY_AMOUNT_THRESHOLD = 50_000

# Store-backed feature groups extracted concurrently
FEATURE_GROUPS = [
    "behavioral",
    "velocity",
    "network"
]
