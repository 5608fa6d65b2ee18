from __future__ import annotations

import logging
from typing import List, Sequence

from .host import HostCapabilities, Outcome

logger = logging.getLogger(__name__)


def _sudo(argv: Sequence[str], use_sudo: bool) -> List[str]:
    return ["sudo", *argv] if use_sudo else list(argv)


def apt_update(caps: HostCapabilities, *, use_sudo: bool = True) -> Outcome:
    return caps.run(_sudo(["apt-get", "update", "-qq", "-y"], use_sudo))


def apt_is_installed(caps: HostCapabilities, package: str) -> bool:
    """Return True if dpkg reports the package as installed."""
    probe = caps.probe(["dpkg-query", "-W", "-f=${Status}", package], version_pattern=r"install ok installed")
    return probe.ok


def apt_install(
    caps: HostCapabilities,
    packages: Sequence[str],
    *,
    use_sudo: bool = True,
) -> Outcome:
    if not packages:
        return Outcome.success()
    return caps.run(_sudo(["apt-get", "install", "-y", *packages], use_sudo))
