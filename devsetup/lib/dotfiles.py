from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator, List, Tuple

from .. import guard
from ..collector import Collector
from ..config import DotfileMapping
from ..errors import FatalError

logger = logging.getLogger(__name__)


def expand(mapping: DotfileMapping, source_dir: Path) -> Iterator[Tuple[Path, PurePosixPath]]:
    """Yield (absolute source, path relative to source_dir) for each matched file."""

    for src in sorted(source_dir.glob(mapping.source)):
        if src.is_dir():
            continue
        yield src, PurePosixPath(src.relative_to(source_dir).as_posix())


def _install_one(
    mapping: DotfileMapping,
    src: Path,
    rel: PurePosixPath,
    *,
    root: Path,
    collector: Collector,
    dry_run: bool,
) -> List[str]:
    dest = root / mapping.destination_for(rel)
    warnings: List[str] = []

    if not dry_run:
        dest.parent.mkdir(parents=True, exist_ok=True)

    if mapping.mode == "symlink":
        action = guard.symlink_action(dest, src)
        if action == guard.CONFLICT:
            collector.record("conflict", str(dest))
            warnings.append(f"Not symlinking to {dest} because it already exists.")
        elif action == guard.APPLY:
            if dry_run:
                logger.info("Would link %s -> %s", dest, src)
            else:
                os.symlink(src, dest)
            collector.record("linked", str(dest))
        else:
            collector.record("skipped", str(dest))

    elif mapping.mode == "copy_with_inclusion":
        marker = mapping.marker_for(rel) or ""
        action = guard.inclusion_copy_action(dest, marker)
        if action == guard.CONFLICT:
            collector.record("conflict", str(dest))
            raise FatalError(f"{dest} does not 'include' {marker}; see {src} and add its contents to {dest}")
        if action == guard.APPLY:
            if dry_run:
                logger.info("Would copy %s -> %s", src, dest)
            else:
                shutil.copyfile(src, dest)
            collector.record("copied", str(dest))
        else:
            collector.record("skipped", str(dest))

    else:
        action = guard.copy_if_absent_action(dest)
        if action == guard.APPLY:
            if dry_run:
                logger.info("Would copy %s -> %s", src, dest)
            else:
                shutil.copyfile(src, dest)
            collector.record("copied", str(dest))
        else:
            collector.record("skipped", str(dest))

    return warnings


def install_dotfiles(
    mappings: Iterable[DotfileMapping],
    *,
    source_dir: Path,
    root: Path,
    collector: Collector,
    dry_run: bool = False,
) -> List[str]:
    """Materialize dotfiles under root; returns warnings for symlink conflicts.

    Raises FatalError when a user-owned copy lacks its required marker.
    """

    source_dir = source_dir.resolve()
    if not source_dir.is_dir():
        raise FatalError(f"Dotfiles source directory missing: {source_dir}")

    warnings: List[str] = []
    for mapping in mappings:
        matched = False
        for src, rel in expand(mapping, source_dir):
            matched = True
            warnings.extend(_install_one(mapping, src, rel, root=root, collector=collector, dry_run=dry_run))
        if not matched:
            logger.debug("No dotfiles match %s", mapping.source)
    return warnings
