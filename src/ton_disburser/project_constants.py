"""
Fixed operating parameters of the disburser.

These values define how the unattended loop paces itself and when it is
allowed to spend. Changing them changes payout behaviour for every batch.
"""

# One interval for every sleep: steady state, config/connect/balance backoff
POLL_INTERVAL_S = 60

# TON uses 9 decimals (1 TON = 10**9 nanotons)
TON_DECIMALS = 9

# Below this balance (nanotons) nothing is submitted in a cycle
MIN_BALANCE_NANO = 300_000

# Pending receiver files, non-recursive
PENDING_GLOB = "*.txt"

# <name>_<hash prefix>.log once the batch is confirmed
PROCESSED_SUFFIX = ".log"
HASH_PREFIX_LEN = 8

# Terminal state for batches that can never be sent
FAILED_SUFFIX = ".failed"

# Written after a confirmed submit, removed once the file is renamed
JOURNAL_SUFFIX = ".sent"

# Wallet message modes
SEND_MODE_PAY_FEES_SEPARATELY = 1
SEND_MODE_IGNORE_ERRORS = 2
BATCH_SEND_MODE = SEND_MODE_PAY_FEES_SEPARATELY | SEND_MODE_IGNORE_ERRORS

DEFAULT_CONFIG_FILE = "config.txt"
DEFAULT_RECEIVERS_FILE = "receivers.txt"
DEFAULT_GATEWAY_URL = "http://127.0.0.1:8081/jsonrpc"
