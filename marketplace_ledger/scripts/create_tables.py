import argparse
import logging

from marketplace_ledger.ledger import Ledger
from marketplace_ledger.utils.config import LedgerConfig
from marketplace_ledger.utils.logging import configure_logging

if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("-c", "--config", help="Path to config file", required=True)
    args = parser.parse_args()

    config = LedgerConfig.from_yaml_file(args.config)
    configure_logging(config.log_level, config.ledger_name)

    # Creates every contract table and the ledger state row if missing
    ledger = Ledger(config)
    logging.info(
        "[Ledger] Tables ready",
        extra={
            "ledger_name": ledger.name,
            "block_timestamp": ledger.now(),
            "last_transaction_version": ledger.last_transaction_version,
        },
    )
