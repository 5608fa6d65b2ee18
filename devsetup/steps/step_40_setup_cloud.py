from __future__ import annotations

import logging
from typing import List

from ..context import SetupContext
from ..errors import FatalError
from ..lib.tools import ensure_tool

logger = logging.getLogger(__name__)


class SetupCloudStep:
    step_id = "40_setup_cloud"
    # The setup script ships in a cloned devtools repo.
    after = ("20_install_dotfiles", "30_clone_repos")
    requires_main_project = False

    def run(self, ctx: SetupContext) -> List[str]:
        tool = ctx.config.cloud_setup
        if tool is None:
            logger.info("No cloud setup configured")
            return []

        outcome = ensure_tool(ctx.caps, tool, collector=ctx.collector, variables=ctx.variables())
        if not outcome.ok:
            raise FatalError(f"Cloud setup failed: {outcome.message}")
        return []
