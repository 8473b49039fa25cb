"""Library logging setup.

The library logger only carries a ``NullHandler``; handlers are the
application's job. ``SAFE_JS_RUNNER_LOG_LEVEL`` sets the library level and
``configure_logging`` attaches a Rich handler for the CLI.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LIBRARY_LOGGER_NAME = "safe_js_runner"

logging.getLogger(LIBRARY_LOGGER_NAME).addHandler(logging.NullHandler())

_env_level = os.environ.get("SAFE_JS_RUNNER_LOG_LEVEL", "").strip().upper()
_env_level_value = logging.getLevelNamesMapping().get(_env_level)
if _env_level_value:
    logging.getLogger(LIBRARY_LOGGER_NAME).setLevel(_env_level_value)


def configure_logging(level: int | str = logging.WARNING) -> logging.Logger:
    """Attach a Rich handler to the library logger (idempotent) and set its level.

    Example:
        ```python
        logger = configure_logging("DEBUG")
        ```
    """
    lib_logger = logging.getLogger(LIBRARY_LOGGER_NAME)
    if not any(isinstance(handler, RichHandler) for handler in lib_logger.handlers):
        lib_logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    lib_logger.setLevel(level)
    return lib_logger
