from __future__ import annotations

from prometheus_client import Counter

# Ledger operation metrics
ledger_ops_total = Counter(
    "streambet_ledger_ops_total", "Ledger operations", ["operation", "status"]
)

# Store metrics
store_requests_total = Counter(
    "streambet_store_requests_total", "Key/value store requests", ["op", "status"]
)
malformed_payloads_total = Counter(
    "streambet_malformed_payloads_total", "Stored payloads that failed to parse", ["kind"]
)

# Disclosure metrics
disclosures_total = Counter(
    "streambet_disclosures_total", "Amount disclosure attempts", ["status"]
)

# Chain metrics
chain_tx_total = Counter(
    "streambet_chain_tx_total", "Key/value contract transactions", ["instruction", "status"]
)
