from __future__ import annotations

import logging

from ..context import SetupContext
from ..errors import FatalError

logger = logging.getLogger(__name__)


def run_main_project_target(ctx: SetupContext, name: str) -> bool:
    """Run a build-system target inside the main project checkout.

    Returns False when no such target is configured.
    """

    argv = ctx.config.build_target(name)
    if not argv:
        logger.info("No %s target configured", name)
        return False

    checkout = ctx.main_project_dir
    if checkout is None:
        raise FatalError(f"Build target {name} needs a repository marked main_project")
    if not checkout.is_dir() and not ctx.dry_run:
        raise FatalError(f"Main project checkout missing: {checkout}")

    outcome = ctx.caps.run(argv, cwd=str(checkout))
    if not outcome.ok:
        raise FatalError(f"{' '.join(argv)} failed in {checkout}: {outcome.message}")
    ctx.collector.record("ran", f"{name} ({checkout.name})")
    return True
