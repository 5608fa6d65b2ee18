from __future__ import annotations

from typing import List

from ..context import SetupContext
from ._targets import run_main_project_target


class CreateDatabasesStep:
    step_id = "80_create_databases"
    after = ("50_install_deps",)
    requires_main_project = True

    def run(self, ctx: SetupContext) -> List[str]:
        run_main_project_target(ctx, "create_databases")
        return []
