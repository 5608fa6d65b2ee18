"""Steps for the OS-level bootstrap (system packages and toolchains).

These run before the per-user setup and usually need sudo.
"""

from __future__ import annotations

import logging
from typing import List

from .context import SetupContext
from .errors import FatalError
from .lib.pkg import apt_install, apt_is_installed, apt_update
from .lib.tools import ensure_tool

logger = logging.getLogger(__name__)


class SystemPackagesStep:
    step_id = "00_system_packages"
    after = ()
    requires_main_project = False

    def run(self, ctx: SetupContext) -> List[str]:
        cfg = ctx.config
        missing = [p for p in cfg.apt_packages if not apt_is_installed(ctx.caps, p)]
        for p in cfg.apt_packages:
            if p not in missing:
                ctx.collector.record("present", p)
        if not missing:
            logger.info("All %d system packages already installed", len(cfg.apt_packages))
            return []

        warnings: List[str] = []
        outcome = apt_update(ctx.caps, use_sudo=cfg.use_sudo)
        if not outcome.ok:
            warnings.append(f"apt-get update failed ({outcome.message}); installing from cached lists")

        outcome = apt_install(ctx.caps, missing, use_sudo=cfg.use_sudo)
        if not outcome.ok:
            raise FatalError(f"Installing system packages failed: {outcome.message}")
        for p in missing:
            ctx.collector.record("installed", p)
        return warnings


class ToolchainsStep:
    step_id = "10_toolchains"
    after = ("00_system_packages",)
    requires_main_project = False

    def run(self, ctx: SetupContext) -> List[str]:
        variables = ctx.variables()
        for tool in ctx.config.toolchains:
            outcome = ensure_tool(ctx.caps, tool, collector=ctx.collector, variables=variables)
            if not outcome.ok:
                hint = f" {tool.hint}" if tool.hint else ""
                raise FatalError(f"{outcome.message}.{hint}")
        return []


ALL_STEPS = [SystemPackagesStep(), ToolchainsStep()]
