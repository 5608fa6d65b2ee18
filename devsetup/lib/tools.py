from __future__ import annotations

import logging
from typing import Mapping

from .. import guard
from ..collector import Collector
from ..config import ToolSpec
from .host import HostCapabilities, Outcome

logger = logging.getLogger(__name__)


def _expand(argv, variables: Mapping[str, str]):
    return [a.format(**variables) for a in argv]


def ensure_tool(
    caps: HostCapabilities,
    tool: ToolSpec,
    *,
    collector: Collector,
    variables: Mapping[str, str] | None = None,
) -> Outcome:
    """Install a tool unless its probe already succeeds.

    Install commands may use {root}-style placeholders from ``variables``.
    """

    variables = variables or {}
    probe = caps.probe(_expand(tool.probe, variables), version_pattern=tool.version_pattern)
    if guard.tool_action(probe) == guard.SKIP:
        collector.record("present", tool.name)
        return Outcome.success(f"{tool.name} already installed")

    logger.info("Installing %s", tool.name)
    for argv in tool.install:
        outcome = caps.run(_expand(argv, variables))
        if not outcome.ok:
            return Outcome.failure(f"Installing {tool.name} failed: {outcome.message}")
    collector.record("installed", tool.name)
    return Outcome.success()
