from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Tuple

DEFAULT_LOG_PATH = str(
    Path(os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache") / "devsetup" / "devsetup.log"
)

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _open_log_file(log_path: str) -> Tuple[logging.Handler, str]:
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        # Read-only home or cache dir.
        fallback = str(Path.cwd() / "devsetup.log")
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = False,
) -> str:
    """Send every command and guard decision to the setup log.

    Prompts, warnings and the summary are printed by the collector, so the
    console handler is opt-in. Calling this twice is a no-op. Returns the
    log file actually in use.
    """

    root = logging.getLogger()
    root.setLevel(level)
    if getattr(root, "_devsetup_configured", False):
        return getattr(root, "_devsetup_log_path", log_path)

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    file_handler, chosen_path = _open_log_file(log_path)
    handlers = [file_handler]
    if also_console:
        handlers.append(logging.StreamHandler())

    for h in handlers:
        h.setFormatter(fmt)
        root.addHandler(h)

    setattr(root, "_devsetup_configured", True)
    setattr(root, "_devsetup_log_path", chosen_path)

    if chosen_path != log_path:
        logging.getLogger(__name__).warning("Cannot write %s; logging to %s", log_path, chosen_path)
    logging.getLogger(__name__).info("Setup log: %s", chosen_path)
    return chosen_path
