from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import IO, List, Optional

from .collector import Collector, CompletionGuard
from .config import SetupConfig, load_setup_config
from .context import SetupContext
from .errors import FatalError
from .lib.host import HostCapabilities
from .lib.manifests import default_dotfiles_dir, default_system_manifest
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .main import EXIT_FATAL, EXIT_INTERRUPTED
from .pipeline import run_pipeline
from .system_steps import ALL_STEPS

logger = logging.getLogger(__name__)


def preflight_warnings(caps: HostCapabilities, cfg: SetupConfig) -> List[str]:
    warnings: List[str] = []
    # Catches flavors like Xubuntu too.
    if not caps.probe(["lsb_release", "-is"], version_pattern=r"(?i)ubuntu").ok:
        warnings.append("This setup is mostly tested on Ubuntu; other distributions may or may not work.")
    shell = Path(os.environ.get("SHELL") or "bash").name
    if shell not in cfg.supported_shells:
        warnings.append(f"You are using {shell}; other shells are not officially supported.")
    return warnings


def run_system(
    *,
    root: str,
    config_path: str | None = None,
    dry_run: bool = False,
    log_path: str = DEFAULT_LOG_PATH,
    verbose: bool = False,
    caps: Optional[HostCapabilities] = None,
    out: Optional[IO[str]] = None,
    err: Optional[IO[str]] = None,
) -> int:
    configure_logging(log_path=log_path, also_console=verbose)
    collector = Collector(out=out or sys.stdout, err=err or sys.stderr)

    with CompletionGuard(collector.err) as completion:
        try:
            cfg = load_setup_config(config_path or default_system_manifest())
        except (OSError, ValueError) as e:
            collector.fatal(FatalError(f"Cannot load system manifest: {e}"))
            return EXIT_FATAL

        caps = caps or HostCapabilities(dry_run=dry_run)
        ctx = SetupContext(
            root=Path(root).expanduser(),
            dotfiles_dir=default_dotfiles_dir(),
            config=cfg,
            caps=caps,
            collector=collector,
            dry_run=dry_run,
        )
        collector.extend(preflight_warnings(caps, cfg))

        try:
            run_pipeline(ctx=ctx, steps=ALL_STEPS)
        except FatalError as e:
            collector.fatal(e)
            return EXIT_FATAL
        except KeyboardInterrupt:
            print("\nInterrupted.", file=collector.err)
            return EXIT_INTERRUPTED

        completion.disarm()
        collector.summary()
        return 0


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="devsetup-system",
        description="Install the system packages and toolchains that devsetup assumes.",
    )
    p.add_argument("root", nargs="?", default=str(Path.home()))
    p.add_argument("--config", default=None, help="System manifest (YAML)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH)
    p.add_argument("--dry-run", action="store_true")
    p.add_argument("-v", "--verbose", action="store_true")

    args = p.parse_args(argv)

    return run_system(
        root=args.root,
        config_path=args.config,
        dry_run=bool(args.dry_run),
        log_path=args.log,
        verbose=bool(args.verbose),
    )


if __name__ == "__main__":
    raise SystemExit(main())
