from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import IO, List, Optional, Tuple

logger = logging.getLogger(__name__)

COMPLETION_MARKER = "DONE!"
SEPARATOR = "-" * 69

INCOMPLETE_NOTICE = """\
***********************************************************************
*  Setup did not complete. Fix the problem reported above and re-run; *
*  steps that already succeeded are skipped automatically.            *
***********************************************************************"""


@dataclass
class Collector:
    """Warnings, outcome events and the end-of-run report for one run."""

    out: IO[str] = field(default_factory=lambda: sys.stdout)
    err: IO[str] = field(default_factory=lambda: sys.stderr)
    warnings: List[str] = field(default_factory=list)
    # (kind, subject), e.g. ("linked", "/home/me/.vimrc")
    events: List[Tuple[str, str]] = field(default_factory=list)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning("%s", message)
        print(f"WARNING: {message}", file=self.out)

    def extend(self, messages: List[str]) -> None:
        for m in messages:
            self.warn(m)

    def record(self, kind: str, subject: str) -> None:
        self.events.append((kind, subject))
        logger.info("%s %s", kind, subject)

    def events_of(self, kind: str) -> List[str]:
        return [subject for k, subject in self.events if k == kind]

    def fatal(self, error: BaseException) -> None:
        logger.error("Fatal: %s", error)
        print(f"FATAL ERROR: {error}", file=self.err)

    def summary(self) -> None:
        print("", file=self.out)
        print(SEPARATOR, file=self.out)
        if self.warnings:
            print("-- WARNINGS:", file=self.out)
            for w in self.warnings:
                print(f"WARNING: {w}", file=self.out)
        print(COMPLETION_MARKER, file=self.out)


class CompletionGuard:
    """Reports an incomplete run on every exit path unless disarmed.

    Enter it before anything else runs and call ``disarm()`` right before
    the success summary is printed. It never suppresses the exception that
    is leaving the block.
    """

    def __init__(self, stream: Optional[IO[str]] = None):
        self._stream = stream
        self.armed = False
        self.fired = False

    def __enter__(self) -> "CompletionGuard":
        self.armed = True
        return self

    def disarm(self) -> None:
        self.armed = False

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.armed:
            self.fired = True
            if exc_type is not None:
                logger.error("Setup exited early (%s)", exc_type.__name__)
            else:
                logger.error("Setup exited early")
            print(INCOMPLETE_NOTICE, file=self._stream or sys.stderr)
        return False
