from __future__ import annotations

import logging
from typing import List

from ..context import SetupContext
from ..errors import FatalError

logger = logging.getLogger(__name__)


class CheckDependenciesStep:
    step_id = "00_check_dependencies"
    after = ()
    requires_main_project = False

    def run(self, ctx: SetupContext) -> List[str]:
        for tool in ctx.config.prerequisites:
            outcome = ctx.caps.probe(tool.probe, version_pattern=tool.version_pattern)
            if not outcome.ok:
                hint = tool.hint or f"Install {tool.name} and re-run."
                raise FatalError(f"Missing required tool {tool.name} ({outcome.message}). {hint}")
            logger.info("Found %s", tool.name)
        return []
