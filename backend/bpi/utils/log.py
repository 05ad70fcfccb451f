"""Logging helpers shared by the client services."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from bpi.config import Settings


def _serialize(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


def structured_log(logger: logging.Logger, event: str, **fields: Any) -> None:
    payload = {"timestamp": datetime.now(timezone.utc).isoformat(), "event": event}
    payload.update(fields)
    logger.info(json.dumps(payload, default=_serialize))


def preview(value: str) -> str:
    """Shorten a secret for log output."""
    return f"{value[:4]}...{value[-4:]}" if len(value) > 8 else "***"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
