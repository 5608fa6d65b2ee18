"""Idempotency decisions for everything setup touches.

Each check answers one question, "does this resource need action?", and
never mutates anything itself:

- APPLY: the resource is absent; the caller installs it.
- SKIP: the resource is already in its desired state.
- CONFLICT: something the user owns is in the way; the caller must not
  touch it and decides whether that is a warning or fatal.

Repeated runs therefore only ever move a machine toward the desired state.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from .lib.host import Outcome

Action = Literal["apply", "skip", "conflict"]

APPLY: Action = "apply"
SKIP: Action = "skip"
CONFLICT: Action = "conflict"


def _lexists(p: Path) -> bool:
    # Path.exists() follows symlinks and misses dangling ones.
    return os.path.lexists(p)


def symlink_action(dest: Path, source: Path) -> Action:
    if dest.is_symlink() and os.readlink(dest) == str(source):
        return SKIP
    if _lexists(dest):
        return CONFLICT
    return APPLY


def inclusion_copy_action(dest: Path, marker: str) -> Action:
    if not _lexists(dest):
        return APPLY
    try:
        text = dest.read_text(encoding="utf-8", errors="replace")
    except OSError:
        # Not a readable regular file.
        return CONFLICT
    return SKIP if marker in text else CONFLICT


def copy_if_absent_action(dest: Path) -> Action:
    return SKIP if _lexists(dest) else APPLY


def repository_action(checkout: Path) -> Action:
    return SKIP if checkout.is_dir() else APPLY


def tool_action(probe: Outcome) -> Action:
    return SKIP if probe.ok else APPLY


def repair_action(local_email: Optional[str], expected_email: str) -> Action:
    return SKIP if local_email == expected_email else APPLY


def file_action(path: Path) -> Action:
    """For generated artifacts (data dumps, rc files) that mark a finished step."""
    return SKIP if path.is_file() else APPLY
