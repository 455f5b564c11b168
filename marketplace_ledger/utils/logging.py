"""
Structured JSON logging for the ledger.

`configure_logging` installs `CustomLogger` as the root logger, so the module level
helpers pick it up and every record is stamped with the ledger name:

        import logging
        logging.info("[Ledger] Transaction committed", extra={"transaction_version": 7})

renders as

    {
        "timestamp": "2021-03-15 14:29:31,000",
        "level": "INFO",
        "ledger": "marketplace_ledger",
        "fields": {
            "message": "[Ledger] Transaction committed",
            "transaction_version": 7
        },
        "module": "ledger",
        "func_name": "_run_transaction",
        "path_name": "/.../marketplace_ledger/ledger.py",
        "line_no": 120
    }
"""

import json
import logging
from typing import Optional


class CustomLogger(logging.Logger):
    ledger_name: Optional[str] = None

    def makeRecord(
        self,
        name,
        level,
        fn,
        lno,
        msg,
        args,
        exc_info,
        func=None,
        extra=None,
        sinfo=None,
    ):
        # `extra` keys would otherwise land flat on the record
        record = super().makeRecord(
            name,
            level,
            fn,
            lno,
            msg,
            args,
            exc_info,
            func=func,
            extra={"fields": extra} if extra else None,
            sinfo=sinfo,
        )
        record.ledger = self.ledger_name
        return record


class JsonFormatter(logging.Formatter):
    def format(self, record):
        fields = {"message": record.getMessage(), **getattr(record, "fields", {})}
        log_data = {"timestamp": self.formatTime(record), "level": record.levelname}
        ledger = getattr(record, "ledger", None)
        if ledger:
            log_data["ledger"] = ledger
        log_data.update(
            fields=fields,
            module=record.module,
            func_name=record.funcName,
            path_name=record.pathname,
            line_no=record.lineno,
        )
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def configure_logging(
    level: str = "INFO", ledger_name: Optional[str] = None
) -> logging.Logger:
    logger = CustomLogger("marketplace_ledger")
    logger.ledger_name = ledger_name
    logger.setLevel(level)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    logging.root = logger
    return logger
