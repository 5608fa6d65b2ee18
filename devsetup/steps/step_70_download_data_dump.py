from __future__ import annotations

import logging
from typing import List

from .. import guard
from ..context import SetupContext
from ._targets import run_main_project_target

logger = logging.getLogger(__name__)


class DownloadDataDumpStep:
    step_id = "70_download_data_dump"
    after = ("50_install_deps",)
    requires_main_project = True

    def run(self, ctx: SetupContext) -> List[str]:
        checkout = ctx.main_project_dir
        if checkout is not None:
            artifact = checkout / ctx.config.data_dump_artifact
            if guard.file_action(artifact) == guard.SKIP:
                ctx.collector.record("skipped", str(artifact))
                return []
        logger.info("Downloading a recent data dump")
        run_main_project_target(ctx, "data_dump")
        return []
