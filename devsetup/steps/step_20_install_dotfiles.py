from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from ..context import SetupContext
from ..lib.dotfiles import install_dotfiles

logger = logging.getLogger(__name__)


class InstallDotfilesStep:
    step_id = "20_install_dotfiles"
    after = ()
    requires_main_project = False

    def _check_shell(self, ctx: SetupContext) -> List[str]:
        # Other shells won't pick up the profile changes; they work if a virtualenv is already active.
        shell = Path(os.environ.get("SHELL") or "bash").name
        if os.environ.get("VIRTUAL_ENV") or shell in ctx.config.supported_shells:
            return []
        return [
            f"Your default shell is {shell}, not {' or '.join(ctx.config.supported_shells)}; "
            "update its config manually to activate the virtualenv."
        ]

    def run(self, ctx: SetupContext) -> List[str]:
        warnings = install_dotfiles(
            ctx.config.dotfiles,
            source_dir=ctx.dotfiles_dir,
            root=ctx.root,
            collector=ctx.collector,
            dry_run=ctx.dry_run,
        )
        warnings.extend(self._check_shell(ctx))

        # Pick up the new profile so later steps see its PATH and friends.
        profile = ctx.root / ".profile"
        if profile.is_file():
            env = ctx.caps.load_profile_env(str(profile))
            if env is None:
                warnings.append(f"Could not source {profile}; later steps use the current environment.")
            else:
                ctx.caps.extend_env(env)
        return warnings
