"""
Structured log lines for chunk and job summaries.

One JSON object per line, always tagged with the dataset, so per-chunk
summaries from disclosure and wage imports can be filtered apart.
"""

from __future__ import annotations

import json
import logging
from typing import Any

EVENT_PREFIX = "lca_ingest"


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    *,
    dataset: str,
    **fields: Any,
) -> None:
    """
    Emit ``{"event": "lca_ingest.<event>", "dataset": ..., **fields}``.

    Fields whose value is None are left out.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {key: value for key, value in fields.items() if value is not None}
    payload.update(event=f"{EVENT_PREFIX}.{event}", dataset=dataset)
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
