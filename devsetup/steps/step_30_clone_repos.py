from __future__ import annotations

from typing import List

from ..context import SetupContext
from ..lib.repos import ensure_repositories


class CloneReposStep:
    step_id = "30_clone_repos"
    # Clones embed the operator identity.
    after = ("10_update_identity",)
    requires_main_project = False

    def run(self, ctx: SetupContext) -> List[str]:
        return ensure_repositories(ctx)
