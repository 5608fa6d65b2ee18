from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import IO, Any, Callable, Dict, Optional

from .collector import Collector, CompletionGuard
from .config import load_setup_config
from .context import SetupContext
from .errors import FatalError
from .lib.host import HostCapabilities
from .lib.manifests import default_dotfiles_dir, default_setup_manifest
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import run_pipeline
from .state_store import save_report
from .steps import (
    CheckDependenciesStep,
    CloneReposStep,
    CreateDatabasesStep,
    DownloadDataDumpStep,
    InstallDepsStep,
    InstallDotfilesStep,
    InstallHooksStep,
    SetupAuthToolStep,
    SetupCloudStep,
    UpdateIdentityStep,
)

logger = logging.getLogger(__name__)

MAIN_PROJECT_ENV = "DEVSETUP_MAIN_PROJECT"
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


def build_steps():
    return [
        CheckDependenciesStep(),
        UpdateIdentityStep(),
        InstallDotfilesStep(),
        CloneReposStep(),
        SetupCloudStep(),
        InstallDepsStep(),
        InstallHooksStep(),
        SetupAuthToolStep(),
        DownloadDataDumpStep(),
        CreateDatabasesStep(),
    ]


def env_flag(name: str, default: bool = True) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def run(
    *,
    root: str,
    config_path: str | None = None,
    dotfiles_dir: str | None = None,
    include_main_project: bool = True,
    dry_run: bool = False,
    log_path: str = DEFAULT_LOG_PATH,
    report_path: str | None = None,
    verbose: bool = False,
    caps: Optional[HostCapabilities] = None,
    prompt: Callable[[str], str] = input,
    out: Optional[IO[str]] = None,
    err: Optional[IO[str]] = None,
) -> int:
    """Provision the workstation under root. Returns the process exit code."""

    actual_log_path = configure_logging(log_path=log_path, also_console=verbose)
    collector = Collector(out=out or sys.stdout, err=err or sys.stderr)
    report: Dict[str, Any] = {
        "root": root,
        "include_main_project": include_main_project,
        "dry_run": dry_run,
        "log_path": actual_log_path,
        "ran_steps": [],
        "skipped_steps": [],
        "warnings": collector.warnings,
        "status": "incomplete",
    }

    try:
        with CompletionGuard(collector.err) as completion:
            try:
                cfg = load_setup_config(config_path or default_setup_manifest())
            except (OSError, ValueError) as e:
                collector.fatal(FatalError(f"Cannot load setup manifest: {e}"))
                report["status"] = "fatal"
                return EXIT_FATAL

            target = Path(root).expanduser()
            if not dry_run:
                target.mkdir(parents=True, exist_ok=True)

            ctx = SetupContext(
                root=target,
                dotfiles_dir=Path(dotfiles_dir) if dotfiles_dir else default_dotfiles_dir(),
                config=cfg,
                caps=caps or HostCapabilities(dry_run=dry_run),
                collector=collector,
                include_main_project=include_main_project,
                dry_run=dry_run,
                prompt=prompt,
            )

            try:
                result = run_pipeline(ctx=ctx, steps=build_steps())
            except FatalError as e:
                logger.error("Step %s failed", e.step_id)
                collector.fatal(e)
                report["status"] = "fatal"
                report["failed_step"] = e.step_id
                report["error"] = str(e)
                return EXIT_FATAL
            except KeyboardInterrupt:
                print("\nInterrupted.", file=collector.err)
                report["status"] = "interrupted"
                return EXIT_INTERRUPTED

            report["ran_steps"] = result.ran_steps
            report["skipped_steps"] = result.skipped_steps
            report["status"] = "complete"
            completion.disarm()
            collector.summary()
            return 0
    finally:
        if report_path:
            save_report(report_path, report)


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="devsetup",
        description="Set up a developer workstation. Safe to run again at any time.",
    )
    p.add_argument("root", nargs="?", default=str(Path.home()), help="Install under this directory (default: $HOME)")
    p.add_argument("--config", default=None, help="Setup manifest (YAML)")
    p.add_argument("--dotfiles-dir", default=None, help="Directory holding the dotfile templates")
    p.add_argument(
        "--no-main-project",
        action="store_true",
        help=f"Skip the main project clone, hooks, data dump and databases (or set {MAIN_PROJECT_ENV}=false)",
    )
    p.add_argument("--dry-run", action="store_true", help="Log actions without changing anything")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to the setup log")
    p.add_argument("--report", default=None, help="Write a run report here (json|yaml)")
    p.add_argument("-v", "--verbose", action="store_true", help="Also log to the console")

    args = p.parse_args(argv)

    return run(
        root=args.root,
        config_path=args.config,
        dotfiles_dir=args.dotfiles_dir,
        include_main_project=env_flag(MAIN_PROJECT_ENV) and not args.no_main_project,
        dry_run=bool(args.dry_run),
        log_path=args.log,
        report_path=args.report,
        verbose=bool(args.verbose),
    )


if __name__ == "__main__":
    raise SystemExit(main())
