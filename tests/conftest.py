import os

os.environ.setdefault("LOGGING_TO_FILE", "false")

import pytest
from loguru import logger


@pytest.fixture
def log_records():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def error_logs(log_records):
    def _errors():
        return [r for r in log_records if r["level"].name == "ERROR"]

    return _errors
