"""Wizard analytics events.

Events are plain log records on the ``switchfinder.analytics`` logger; route that
logger to a collector in the deployment's logging config to ship them elsewhere.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


def _emit(event: str, payload: dict) -> dict:
    record = {"event": event, **payload}
    logger.info(f"[ANALYTICS] {event}: {record}", extra={"analytics_event": event, "analytics_payload": record})
    return record


def track_wizard_step(step: int, flow: str, data: Optional[dict] = None) -> dict:
    return _emit("wizard_step", {"step": step, "flow": flow, **(data or {})})


def track_product_view(product_id: str, source: str = "results") -> dict:
    return _emit("product_view", {"product_id": product_id, "source": source})


def track_export(flow: str, data: Optional[dict] = None) -> dict:
    return _emit("export", {"flow": flow, **(data or {})})


def track_quote_request(data: Optional[dict] = None, flow: str = "medical") -> dict:
    return _emit("quote_request", {"flow": flow, **(data or {})})


def track_no_results(selection: dict, relaxed: Optional[str] = None, alternatives: int = 0) -> dict:
    """Logged whenever exact matching comes up empty; these drive catalog gap reviews."""
    return _emit("no_results", {"selection": selection, "relaxed": relaxed, "alternatives": alternatives})
