from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import IO, List, Optional

from .config import load_setup_config
from .lib.command import run_cmd
from .lib.manifests import default_setup_manifest


@dataclass(frozen=True)
class ServiceStatus:
    name: str
    port: int
    pid: Optional[str]
    detail: str = ""

    @property
    def running(self) -> bool:
        return self.pid is not None


def port_status(name: str, port: int) -> ServiceStatus:
    """Report which process, if any, listens on a local port."""

    res = run_cmd(["lsof", "-P", f"-i:{port}"], check=False)
    lines = [ln for ln in res.stdout.splitlines() if ln.strip()]
    # First line is the lsof header.
    if not res.ok or len(lines) < 2:
        return ServiceStatus(name=name, port=port, pid=None)
    pid = lines[-1].split()[1]
    return ServiceStatus(name=name, port=port, pid=pid, detail="\n".join(lines))


def report(statuses: List[ServiceStatus], out: IO[str]) -> None:
    for s in statuses:
        state = "RUNNING" if s.running else "NOT RUNNING"
        print(f"{s.name} (port {s.port}) status - {state}", file=out)
        if s.running:
            print(s.detail, file=out)
            print("", file=out)


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="devsetup-status", description="Show which dev services are running.")
    p.add_argument("--config", default=None, help="Setup manifest (YAML)")
    args = p.parse_args(argv)

    try:
        cfg = load_setup_config(args.config or default_setup_manifest())
    except (OSError, ValueError) as e:
        print(f"FATAL ERROR: Cannot load setup manifest: {e}", file=sys.stderr)
        return 1
    statuses = [port_status(str(s["name"]), int(s["port"])) for s in cfg.services]
    report(statuses, sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
