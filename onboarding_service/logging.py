import logging

import structlog


def configure_logging(level: str = "INFO", *, json_output: bool = True) -> None:
    """Configure structlog once for the process.

    Events are filtered at ``level`` and rendered as one JSON object per line;
    values bound with ``structlog.contextvars`` (the correlation id) are merged in.
    """
    level_number = logging.getLevelName(level.upper())
    if not isinstance(level_number, int):
        level_number = logging.INFO
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_number),
    )


def mask_sensitive(value: str | None, *, visible: int = 2) -> str | None:
    if value is None:
        return None
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}***{value[-visible:]}"


def mask_email(value: str | None) -> str | None:
    if value is None or "@" not in value:
        return mask_sensitive(value)
    local, _, domain = value.partition("@")
    return f"{mask_sensitive(local, visible=1)}@{domain}"
