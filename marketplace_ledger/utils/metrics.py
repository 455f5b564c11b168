from prometheus_client import Counter, Gauge

EXECUTED_TRANSACTIONS_COUNTER = Counter(
    "marketplace_ledger_executed_transactions",
    "Number of committed ledger transactions",
    ["contract_type", "entrypoint"],
)

REVERTED_TRANSACTIONS_COUNTER = Counter(
    "marketplace_ledger_reverted_transactions",
    "Number of reverted ledger transactions",
    ["contract_type", "entrypoint"],
)

LATEST_COMMITTED_VERSION = Gauge(
    "marketplace_ledger_latest_version",
    "Latest committed ledger version",
    ["ledger_name"],
)
