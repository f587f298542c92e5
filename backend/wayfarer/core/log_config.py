"""
Structured logging setup (structlog JSON output over the standard library handlers)
"""

import logging
import re
from typing import Optional

import structlog

from wayfarer.core.settings import Settings, get_settings

_MAPBOX_TOKEN = re.compile(r'([?&]access_token=)[^&\s]+')
_OPENAI_KEY = re.compile(r'(sk-[0-9A-Za-z_-]{16,})')


def _scrub(value):
    if isinstance(value, str):
        value = _MAPBOX_TOKEN.sub(r'\1REDACTED', value)
        return _OPENAI_KEY.sub('REDACTED', value)
    if isinstance(value, list):
        return [_scrub(item) for item in value]
    if isinstance(value, dict):
        return {k: _scrub(v) for k, v in value.items()}
    return value


def redact_api_keys(logger, method_name, event_dict):
    """structlog processor removing Mapbox tokens and OpenAI keys from any value"""
    for key, value in list(event_dict.items()):
        event_dict[key] = _scrub(value)
    return event_dict


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_api_keys,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format='%(message)s',  # structlog handles formatting
        handlers=handlers,
    )
