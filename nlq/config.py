from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WidgetConfig:
    api_url: str
    api_token: Optional[str]
    timeout_s: float
    catalog_timeout_s: float
    max_examples: int
    page_size: int


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive %s=%r; using default %s", name, raw, default)
        return default
    return value


def get_widget_config() -> WidgetConfig:
    token = os.getenv("NLQ_API_TOKEN", "").strip()
    return WidgetConfig(
        api_url=os.getenv("NLQ_API_URL", "http://localhost:8080").rstrip("/"),
        api_token=token or None,
        timeout_s=_env_number("NLQ_TIMEOUT_S", 120.0, float),
        catalog_timeout_s=_env_number("NLQ_CATALOG_TIMEOUT_S", 10.0, float),
        max_examples=_env_number("NLQ_MAX_EXAMPLES", 6, int),
        page_size=_env_number("NLQ_PAGE_SIZE", 10, int),
    )
