from __future__ import annotations

from typing import List

from ..context import SetupContext
from ..lib.identity import resolve_identity


class UpdateIdentityStep:
    step_id = "10_update_identity"
    after = ()
    requires_main_project = False

    def run(self, ctx: SetupContext) -> List[str]:
        resolve_identity(ctx)
        return []
