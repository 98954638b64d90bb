"""Logging setup shared by the CLI and library callers."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# per-request dumps from the AWS SDK would bury the listing trace
SDK_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")


def resolve_level(value: Any, default: int = logging.INFO) -> int:
    """Translate a level name or number into a logging level."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    level = logging.getLevelName(str(value).strip().upper())
    return level if isinstance(level, int) else default


def _build_handlers(config: Dict[str, Any], level: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if config.get("console", True):
        # listings go to stdout, so diagnostics stay on stderr
        handlers.append(logging.StreamHandler(sys.stderr))

    file_path = config.get("file")
    if file_path:
        path = Path(file_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    formatter = logging.Formatter(config.get("format") or DEFAULT_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def configure_logging(config: Dict[str, Any], level_override: Optional[str] = None) -> int:
    """Configure the root logger from a ``logging`` config section.

    ``level_override`` (the CLI's ``--log-level``) wins over the configured
    level. Returns the effective level.
    """
    level = resolve_level(level_override or config.get("level", "INFO"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for handler in _build_handlers(config, level):
        root_logger.addHandler(handler)

    logging.captureWarnings(True)

    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    return level
