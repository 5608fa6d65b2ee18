from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Result of a blocking call into an external collaborator."""

    ok: bool
    message: str = ""

    @classmethod
    def success(cls, message: str = "") -> "Outcome":
        return cls(ok=True, message=message)

    @classmethod
    def failure(cls, message: str) -> "Outcome":
        return cls(ok=False, message=message)


def _outcome(res: CmdResult) -> Outcome:
    if res.ok:
        return Outcome.success(res.stdout.strip())
    detail = res.stderr.strip() or res.stdout.strip() or f"exit status {res.returncode}"
    return Outcome.failure(detail)


class HostCapabilities:
    """Everything setup needs from the machine, behind one seam.

    Each method is a blocking call that reports an Outcome rather than
    raising. Tests substitute a fake with the same methods.
    """

    def __init__(self, *, dry_run: bool = False, env: Mapping[str, str] | None = None):
        self.dry_run = dry_run
        self.env: Dict[str, str] = dict(env or {})

    def extend_env(self, env: Mapping[str, str]) -> None:
        self.env.update(env)

    def _run(self, argv: Sequence[str], *, cwd: str | None = None, env: Mapping[str, str] | None = None) -> CmdResult:
        merged = dict(self.env, **(env or {}))
        return run_cmd(argv, check=False, cwd=cwd, env=merged, dry_run=self.dry_run)

    def probe(self, argv: Sequence[str], *, version_pattern: str | None = None) -> Outcome:
        """Presence/version probe. Probes run even in dry-run mode."""
        res = run_cmd(argv, check=False, env=self.env)
        if not res.ok:
            return _outcome(res)
        if version_pattern:
            text = f"{res.stdout}\n{res.stderr}"
            if not re.search(version_pattern, text):
                return Outcome.failure(f"unsupported version: {text.strip()}")
        return Outcome.success(res.stdout.strip())

    def run(self, argv: Sequence[str], *, cwd: str | None = None, env: Mapping[str, str] | None = None) -> Outcome:
        return _outcome(self._run(argv, cwd=cwd, env=env))

    def git_config_get(self, key: str, *, repo: str | None = None) -> Optional[str]:
        if repo:
            argv = ["git", "-C", repo, "config", "--local", "--get", key]
        else:
            argv = ["git", "config", "--global", "--get", key]
        res = run_cmd(argv, check=False, env=self.env)
        value = res.stdout.strip()
        return value if res.ok and value else None

    def git_config_set(self, key: str, value: str) -> Outcome:
        return _outcome(self._run(["git", "config", "--global", key, value]))

    def checkout_root(self, path: str) -> Optional[str]:
        """Top-level directory of the git checkout containing path, if any."""
        res = run_cmd(["git", "-C", path, "rev-parse", "--show-toplevel"], check=False, env=self.env)
        top = res.stdout.strip()
        return top if res.ok and top else None

    def clone(self, url: str, dest: str) -> Outcome:
        """Plain clone plus recursive submodule init."""
        Path(dest).parent.mkdir(parents=True, exist_ok=True)
        res = self._run(["git", "clone", url, dest])
        if not res.ok:
            return _outcome(res)
        return _outcome(self._run(["git", "submodule", "update", "--init", "--recursive"], cwd=dest))

    def identity_clone(
        self,
        tool: str,
        url: str,
        dest: str,
        *,
        email: str,
        args: Sequence[str] = (),
    ) -> Outcome:
        Path(dest).parent.mkdir(parents=True, exist_ok=True)
        return _outcome(self._run([tool, url, dest, *args, f"--email={email}"]))

    def repair(self, tool: str, checkout: str, *, email: str) -> Outcome:
        return _outcome(self._run([tool, "--repair", "--quiet", f"--email={email}"], cwd=checkout))

    def load_profile_env(self, profile: str) -> Optional[Dict[str, str]]:
        """Source a shell profile and return the environment it produces."""
        res = run_cmd(
            ["bash", "-c", '. "$1" >/dev/null 2>&1; env -0', "devsetup", profile],
            check=False,
            env=self.env,
        )
        if not res.ok:
            logger.warning("Sourcing %s failed: %s", profile, res.stderr.strip())
            return None
        env: Dict[str, str] = {}
        for entry in res.stdout.split("\0"):
            key, sep, value = entry.partition("=")
            if sep and key:
                env[key] = value
        return env
