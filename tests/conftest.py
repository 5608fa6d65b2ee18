from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from devsetup.collector import Collector
from devsetup.config import SetupConfig
from devsetup.context import SetupContext
from fakes import TEST_MANIFEST, FakeHost, ScriptedPrompt


@pytest.fixture
def home(tmp_path: Path) -> Path:
    p = tmp_path / "home"
    p.mkdir()
    return p


@pytest.fixture
def dotfiles_dir(tmp_path: Path) -> Path:
    src = tmp_path / "dotfiles"
    (src / ".vim" / "ftplugin").mkdir(parents=True)
    (src / ".bashrc.managed").write_text("export MANAGED=1\n", encoding="utf-8")
    (src / ".profile.managed").write_text("PATH=$HOME/bin:$PATH\n", encoding="utf-8")
    (src / ".vim" / "ftplugin" / "python.vim").write_text("setlocal expandtab\n", encoding="utf-8")
    (src / "bashrc.default").write_text(". ~/.bashrc.managed\n", encoding="utf-8")
    (src / "gitignore.template").write_text("*.swp\n", encoding="utf-8")
    return src


@pytest.fixture
def host(home: Path) -> FakeHost:
    def fetch_dump(cwd):
        artifact = Path(cwd) / "datastore" / "current.sqlite"
        artifact.parent.mkdir(parents=True, exist_ok=True)
        artifact.write_text("dump", encoding="utf-8")

    def arc(cwd):
        (home / ".arcrc").write_text("{}", encoding="utf-8")

    return FakeHost(
        git_config={"user.name": "Ada Lovelace", "orgclone.email": "ada@example.org"},
        side_effects={"fetch-dump": fetch_dump, "arc": arc},
    )


@pytest.fixture
def manifest_path(tmp_path: Path) -> Path:
    p = tmp_path / "setup.yaml"
    p.write_text(yaml.safe_dump(TEST_MANIFEST), encoding="utf-8")
    return p


@pytest.fixture
def make_ctx(home: Path, dotfiles_dir: Path, host: FakeHost):
    def _make(**overrides) -> SetupContext:
        kwargs: Dict[str, Any] = dict(
            root=home,
            dotfiles_dir=dotfiles_dir,
            config=SetupConfig(raw=TEST_MANIFEST),
            caps=host,
            collector=Collector(out=io.StringIO(), err=io.StringIO()),
            prompt=ScriptedPrompt(),
        )
        kwargs.update(overrides)
        return SetupContext(**kwargs)

    return _make


@pytest.fixture(autouse=True)
def _no_log_files(monkeypatch, tmp_path: Path):
    # Keep the root logger untouched between tests.
    log = str(tmp_path / "devsetup.log")
    monkeypatch.setattr("devsetup.main.configure_logging", lambda **kw: log)
    monkeypatch.setattr("devsetup.system.configure_logging", lambda **kw: log)
