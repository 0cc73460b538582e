from __future__ import annotations

import json
import logging

from app.logging_utils import log_event


def test_log_event_tags_dataset_and_drops_empty_fields(caplog) -> None:
    logger = logging.getLogger("tests.log_event")

    with caplog.at_level(logging.INFO, logger="tests.log_event"):
        log_event(logger, logging.INFO, "chunk_processed", dataset="wage", parsed=3, next_cursor=None)

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload == {"event": "lca_ingest.chunk_processed", "dataset": "wage", "parsed": 3}


def test_log_event_is_silent_below_the_logger_level(caplog) -> None:
    logger = logging.getLogger("tests.log_event.quiet")

    with caplog.at_level(logging.WARNING, logger="tests.log_event.quiet"):
        log_event(logger, logging.INFO, "chunk_processed", dataset="disclosure")

    assert caplog.records == []
