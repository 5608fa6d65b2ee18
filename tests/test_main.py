"""End-to-end runs of the orchestrator against a fake host."""

from __future__ import annotations

import io
import os
from pathlib import Path
from typing import Dict

import pytest
import yaml

from devsetup import main as main_mod
from devsetup.collector import COMPLETION_MARKER, INCOMPLETE_NOTICE
from devsetup.main import env_flag, run
from devsetup.state_store import load_report
from fakes import MAIN_URL, ORG, TEST_MANIFEST, FakeHost, ScriptedPrompt


@pytest.fixture(autouse=True)
def _bash_shell(monkeypatch):
    monkeypatch.setenv("SHELL", "/bin/bash")
    monkeypatch.delenv("VIRTUAL_ENV", raising=False)


@pytest.fixture
def setup_run(home: Path, dotfiles_dir: Path, manifest_path: Path, host: FakeHost):
    """Run devsetup once; returns (exit code, stdout, stderr)."""

    def _run(**overrides):
        out, err = io.StringIO(), io.StringIO()
        kwargs = dict(
            root=str(home),
            config_path=str(manifest_path),
            dotfiles_dir=str(dotfiles_dir),
            caps=host,
            prompt=ScriptedPrompt(),
            out=out,
            err=err,
        )
        kwargs.update(overrides)
        rc = run(**kwargs)
        return rc, out.getvalue(), err.getvalue()

    return _run


def _snapshot(root: Path) -> Dict[str, str]:
    snap: Dict[str, str] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            p = Path(dirpath) / name
            rel = str(p.relative_to(root))
            if p.is_symlink():
                snap[rel] = "-> " + os.readlink(p)
            elif p.is_file():
                snap[rel] = p.read_text(encoding="utf-8")
            else:
                snap[rel] = "<dir>"
    return snap


class TestFreshMachine:
    def test_completes(self, setup_run, home: Path, host: FakeHost) -> None:
        rc, out, err = setup_run()

        assert rc == 0
        assert out.rstrip().endswith(COMPLETION_MARKER)
        assert "-- WARNINGS:" not in out
        assert INCOMPLETE_NOTICE not in err

        assert (home / ".bashrc.managed").is_symlink()
        assert (home / ".vim" / "ftplugin" / "python.vim").is_symlink()
        assert (home / ".bashrc").read_text(encoding="utf-8") == ". ~/.bashrc.managed\n"
        assert (home / ".gitignore").is_file()
        assert (home / "code" / "webapp").is_dir()
        assert (home / "code" / "webapp" / "datastore" / "current.sqlite").is_file()
        assert (home / ".arcrc").is_file()

        assert host.ran("make", "install_deps")
        assert host.ran("make", "hooks")
        assert host.ran("fetch-dump")
        assert host.ran("make", "pg_create")

    def test_prompts_for_identity_once(self, setup_run, host: FakeHost) -> None:
        host.git_config.clear()
        prompt = ScriptedPrompt({"full name": "Grace Hopper", "email": "grace"})

        rc, _, _ = setup_run(prompt=prompt)

        assert rc == 0
        assert prompt.asked("full name") == 1
        assert prompt.asked("example.org email") == 1
        assert host.git_config["orgclone.email"] == "grace@example.org"
        assert {c[3] for c in host.calls_of("identity_clone")} == {"grace@example.org"}


class TestIdempotence:
    def test_second_run_changes_nothing(self, setup_run, home: Path, host: FakeHost) -> None:
        assert setup_run()[0] == 0
        first_fs = _snapshot(home)
        first_mutations = host.mutations()

        rc, out, _ = setup_run()

        assert rc == 0
        assert COMPLETION_MARKER in out
        assert _snapshot(home) == first_fs
        assert host.mutations() == first_mutations

    def test_existing_checkout_is_not_cloned(self, setup_run, home: Path, host: FakeHost) -> None:
        (home / "code" / "webapp").mkdir(parents=True)
        setup_run()
        assert MAIN_URL not in [c[1] for c in host.calls_of("identity_clone")]


class TestDotfileConflicts:
    def test_symlink_conflict_warns_and_preserves_file(self, setup_run, home: Path) -> None:
        mine = home / ".bashrc.managed"
        mine.write_text("# mine\n", encoding="utf-8")

        rc, out, _ = setup_run()

        assert rc == 0
        assert not mine.is_symlink()
        assert mine.read_text(encoding="utf-8") == "# mine\n"
        assert "-- WARNINGS:" in out
        assert f"Not symlinking to {mine} because it already exists." in out
        assert out.rstrip().endswith(COMPLETION_MARKER)

    def test_missing_marker_halts_before_clones(self, setup_run, home: Path, host: FakeHost) -> None:
        (home / ".bashrc").write_text("alias ll='ls -l'\n", encoding="utf-8")

        rc, out, err = setup_run()

        assert rc == 1
        assert "FATAL ERROR:" in err
        assert ".bashrc.managed" in err
        assert INCOMPLETE_NOTICE in err
        assert COMPLETION_MARKER not in out
        assert (home / ".bashrc").read_text(encoding="utf-8") == "alias ll='ls -l'\n"
        assert host.calls_of("clone") == []
        assert host.calls_of("identity_clone") == []

    def test_included_marker_leaves_user_file(self, setup_run, home: Path) -> None:
        text = "alias ll='ls -l'\n. ~/.bashrc.managed\n"
        (home / ".bashrc").write_text(text, encoding="utf-8")

        assert setup_run()[0] == 0
        assert (home / ".bashrc").read_text(encoding="utf-8") == text

    def test_dangling_inclusion_target_halts_cleanly(self, setup_run, home: Path, host: FakeHost) -> None:
        os.symlink(home / "deleted-bashrc", home / ".bashrc")

        rc, out, err = setup_run()

        assert rc == 1
        assert "FATAL ERROR:" in err
        assert ".bashrc.managed" in err
        assert INCOMPLETE_NOTICE in err
        assert COMPLETION_MARKER not in out
        assert os.readlink(home / ".bashrc") == str(home / "deleted-bashrc")
        assert host.calls_of("identity_clone") == []


class TestFailures:
    def test_main_project_access_denied(self, setup_run, host: FakeHost) -> None:
        host.clone_failures[MAIN_URL] = "git@github.com: Permission denied (publickey)."

        rc, out, err = setup_run()

        assert rc == 1
        assert "access denied" in err
        assert "not found" not in err
        assert INCOMPLETE_NOTICE in err
        assert COMPLETION_MARKER not in out
        for argv in (("make", "install_deps"), ("make", "hooks"), ("fetch-dump",), ("make", "pg_create")):
            assert not host.ran(*argv)

    def test_optional_repo_failure_warns(self, setup_run, host: FakeHost) -> None:
        host.clone_failures[f"{ORG}/org-linter"] = "ERROR: Repository not found."

        rc, out, _ = setup_run()

        assert rc == 0
        assert "-- WARNINGS:" in out
        assert "org-linter" in out
        assert host.ran("make", "pg_create")

    def test_missing_prerequisite(self, setup_run, host: FakeHost) -> None:
        host.absent.add("npm")

        rc, _, err = setup_run()

        assert rc == 1
        assert "Run devsetup-system first." in err
        assert host.calls_of("git_config_set") == []

    def test_build_target_failure(self, setup_run, host: FakeHost) -> None:
        host.run_failures["make"] = "make: *** [install_deps] Error 2"

        rc, _, err = setup_run()

        assert rc == 1
        assert "install_deps" in err
        assert not host.ran("fetch-dump")

    def test_auth_tool_failure_warns(self, setup_run, host: FakeHost) -> None:
        host.run_failures["arc"] = "arc: certificate rejected"

        rc, out, _ = setup_run()

        assert rc == 0
        assert "arc install-certificate" in out

    def test_bad_manifest(self, setup_run, tmp_path: Path) -> None:
        rc, _, err = setup_run(config_path=str(tmp_path / "missing.yaml"))
        assert rc == 1
        assert "Cannot load setup manifest" in err
        assert INCOMPLETE_NOTICE in err

    def test_escaping_destination_is_a_manifest_error(self, setup_run, tmp_path: Path, host: FakeHost) -> None:
        escaping = {"source": "*.template", "mode": "copy_if_absent", "dest": "../{name}"}
        manifest = dict(TEST_MANIFEST, dotfiles=[escaping])
        path = tmp_path / "escaping.yaml"
        path.write_text(yaml.safe_dump(manifest), encoding="utf-8")

        rc, _, err = setup_run(config_path=str(path))

        assert rc == 1
        assert "Cannot load setup manifest" in err
        assert "escapes the target root" in err
        assert host.calls == []
        assert not (tmp_path / "gitignore.template").exists()

    def test_interrupt(self, setup_run, host: FakeHost) -> None:
        def interrupted(question: str) -> str:
            raise KeyboardInterrupt

        host.git_config.clear()
        rc, _, err = setup_run(prompt=interrupted)

        assert rc == 130
        assert INCOMPLETE_NOTICE in err


class TestWithoutMainProject:
    def test_main_project_work_is_skipped(self, setup_run, home: Path, host: FakeHost) -> None:
        rc, out, _ = setup_run(include_main_project=False)

        assert rc == 0
        assert "WARNING" not in out
        assert out.rstrip().endswith(COMPLETION_MARKER)
        assert not (home / "code" / "webapp").exists()
        assert MAIN_URL not in [c[1] for c in host.calls_of("identity_clone")]
        for argv in (("make", "install_deps"), ("make", "hooks"), ("fetch-dump",), ("make", "pg_create")):
            assert not host.ran(*argv)

        # Everything else still happened.
        assert f"{ORG}/org-linter" in [c[1] for c in host.calls_of("identity_clone")]
        assert (home / ".bashrc.managed").is_symlink()
        assert host.ran("arc", "install-certificate", "--", "https://review.example.org")


class TestReport:
    def test_report_written(self, setup_run, tmp_path: Path) -> None:
        path = tmp_path / "report.json"
        setup_run(report_path=str(path))

        report = load_report(str(path))
        assert report["status"] == "complete"
        assert report["ran_steps"][0] == "00_check_dependencies"
        assert report["warnings"] == []

    def test_report_records_failure(self, setup_run, host: FakeHost, tmp_path: Path) -> None:
        host.clone_failures[MAIN_URL] = "Permission denied (publickey)."
        path = tmp_path / "report.yaml"
        setup_run(report_path=str(path))

        report = load_report(str(path))
        assert report["status"] == "fatal"
        assert report["failed_step"] == "30_clone_repos"


class TestCommandLine:
    @pytest.mark.parametrize(
        "value,expected",
        [(None, True), ("", True), ("1", True), ("yes", True), ("0", False), ("false", False), ("OFF", False)],
    )
    def test_env_flag(self, monkeypatch, value, expected) -> None:
        if value is None:
            monkeypatch.delenv("DEVSETUP_TEST_FLAG", raising=False)
        else:
            monkeypatch.setenv("DEVSETUP_TEST_FLAG", value)
        assert env_flag("DEVSETUP_TEST_FLAG") is expected

    def _capture(self, monkeypatch) -> Dict[str, object]:
        seen: Dict[str, object] = {}

        def fake_run(**kwargs):
            seen.update(kwargs)
            return 0

        monkeypatch.setattr(main_mod, "run", fake_run)
        return seen

    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv(main_mod.MAIN_PROJECT_ENV, raising=False)
        seen = self._capture(monkeypatch)

        assert main_mod.main(["/tmp/somewhere"]) == 0
        assert seen["root"] == "/tmp/somewhere"
        assert seen["include_main_project"] is True
        assert seen["dry_run"] is False

    def test_no_main_project_flag(self, monkeypatch) -> None:
        monkeypatch.delenv(main_mod.MAIN_PROJECT_ENV, raising=False)
        seen = self._capture(monkeypatch)

        main_mod.main(["--no-main-project", "--dry-run", "--report", "r.json"])

        assert seen["include_main_project"] is False
        assert seen["dry_run"] is True
        assert seen["report_path"] == "r.json"

    def test_main_project_env(self, monkeypatch) -> None:
        monkeypatch.setenv(main_mod.MAIN_PROJECT_ENV, "false")
        seen = self._capture(monkeypatch)

        main_mod.main([])

        assert seen["include_main_project"] is False
