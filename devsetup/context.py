from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from .collector import Collector
from .config import SetupConfig
from .lib.host import HostCapabilities


@dataclass(frozen=True)
class UserIdentity:
    name: str
    email: str


@dataclass
class SetupContext:
    """Everything a step may read, built once at process start."""

    root: Path
    dotfiles_dir: Path
    config: SetupConfig
    caps: HostCapabilities
    collector: Collector
    include_main_project: bool = True
    dry_run: bool = False
    prompt: Callable[[str], str] = input
    identity: Optional[UserIdentity] = None

    @property
    def repos_dir(self) -> Path:
        return self.root / self.config.repos_dir

    @property
    def devtools_dir(self) -> Path:
        return self.root / self.config.devtools_dir

    @property
    def clone_tool_dir(self) -> Path:
        return self.config.clone_tool.checkout_dir(self.root)

    @property
    def clone_tool_bin(self) -> Path:
        return self.clone_tool_dir / self.config.clone_tool_bin

    @property
    def main_project_dir(self) -> Optional[Path]:
        spec = self.config.main_project
        return spec.checkout_dir(self.root) if spec else None

    def variables(self) -> Dict[str, str]:
        """Placeholders available to commands in the manifest."""
        return {
            "root": str(self.root),
            "repos": str(self.repos_dir),
            "devtools": str(self.devtools_dir),
            "dotfiles": str(self.dotfiles_dir),
            "virtualenv": str(self.root / self.config.virtualenv_dir),
        }
