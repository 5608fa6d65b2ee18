from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from ..context import SetupContext
from ..errors import FatalError
from ..lib.tools import ensure_tool
from ._targets import run_main_project_target

logger = logging.getLogger(__name__)


class InstallDepsStep:
    step_id = "50_install_deps"
    # The main project's install target probes for cloud tooling.
    after = ("20_install_dotfiles", "30_clone_repos", "40_setup_cloud")
    requires_main_project = False

    def _activate_virtualenv(self, ctx: SetupContext) -> None:
        venv = ctx.root / ctx.config.virtualenv_dir
        if not (venv / "bin").is_dir() and not ctx.dry_run:
            return
        path = ctx.caps.env.get("PATH") or os.environ.get("PATH", "")
        ctx.caps.extend_env({"VIRTUAL_ENV": str(venv), "PATH": f"{Path(venv, 'bin')}{os.pathsep}{path}"})
        logger.info("Activated virtualenv %s", venv)

    def run(self, ctx: SetupContext) -> List[str]:
        variables = ctx.variables()
        for tool in ctx.config.tools:
            outcome = ensure_tool(ctx.caps, tool, collector=ctx.collector, variables=variables)
            if not outcome.ok:
                raise FatalError(outcome.message)

        self._activate_virtualenv(ctx)

        if ctx.include_main_project:
            run_main_project_target(ctx, "install_deps")
        return []
