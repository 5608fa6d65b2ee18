from __future__ import annotations

from typing import List

from ..context import SetupContext
from ._targets import run_main_project_target


class InstallHooksStep:
    step_id = "60_install_hooks"
    after = ("30_clone_repos", "50_install_deps")
    requires_main_project = True

    def run(self, ctx: SetupContext) -> List[str]:
        run_main_project_target(ctx, "hooks")
        return []
