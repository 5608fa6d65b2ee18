from __future__ import annotations

import logging
import os
from typing import List

from .. import guard
from ..context import SetupContext

logger = logging.getLogger(__name__)


class SetupAuthToolStep:
    """Install the code-review tool's certificate.

    The rc file holds secrets, so it is never templated; the tool writes it
    itself once the operator has logged in through the browser.
    """

    step_id = "65_setup_auth_tool"
    after = ("30_clone_repos", "50_install_deps")
    requires_main_project = False

    def run(self, ctx: SetupContext) -> List[str]:
        cfg = ctx.config.auth_tool
        command = ctx.config.auth_command
        if not command:
            return []

        rc_file = ctx.root / str(cfg.get("rc_file") or ".arcrc")
        if guard.file_action(rc_file) == guard.SKIP:
            ctx.collector.record("skipped", str(rc_file))
            return []

        login_url = str(cfg.get("login_url") or "")
        out = ctx.collector.out
        print("Time to set up the code review tool!", file=out)
        if login_url:
            print("First make sure you're logged in and your account is set up:", file=out)
            print(f"  -->  {login_url}  <--", file=out)
        ctx.prompt("Press enter when you're logged in: ")

        env = {}
        bin_dir = cfg.get("bin_dir")
        if bin_dir:
            # The profile adds this to PATH, but it may not be sourced yet.
            path = ctx.caps.env.get("PATH") or os.environ.get("PATH", "")
            env["PATH"] = f"{ctx.devtools_dir / str(bin_dir)}{os.pathsep}{path}"

        variables = dict(ctx.variables(), login_url=login_url)
        argv = [a.format(**variables) for a in command]
        outcome = ctx.caps.run(argv, env=env)
        if not outcome.ok:
            return [f"Code review tool setup failed ({outcome.message}); run `{' '.join(argv)}` by hand."]
        ctx.collector.record("configured", str(rc_file))
        return []
