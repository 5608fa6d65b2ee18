from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Literal

from .. import guard
from ..config import RepositorySpec
from ..context import SetupContext
from ..errors import FatalError
from .identity import resolve_identity

logger = logging.getLogger(__name__)

FailureKind = Literal["access_denied", "not_found", "other"]

_ACCESS_DENIED = re.compile(
    r"permission denied|authentication failed|access denied|publickey|\b403\b",
    re.IGNORECASE,
)
_NOT_FOUND = re.compile(r"not found|does not exist|no such|\b404\b", re.IGNORECASE)
_ACCESS_HINT = re.compile(r"access rights", re.IGNORECASE)


def classify_clone_failure(message: str, *, requires_auth: bool = False) -> FailureKind:
    if _ACCESS_DENIED.search(message):
        return "access_denied"
    if _NOT_FOUND.search(message):
        # Git hosts answer "not found ... check your access rights" for private
        # repositories the caller cannot see.
        if requires_auth and _ACCESS_HINT.search(message):
            return "access_denied"
        return "not_found"
    return "other"


def describe_clone_failure(spec: RepositorySpec, message: str) -> str:
    kind = classify_clone_failure(message, requires_auth=spec.requires_auth)
    if kind == "access_denied":
        text = f"Unable to clone {spec.url}: access denied."
        if spec.requires_auth:
            text += " This repository is private; perhaps you don't have access? Ask to be added to it."
        else:
            text += " Check that your SSH key is registered with the git host."
        return text
    if kind == "not_found":
        return f"Unable to clone {spec.url}: repository not found. Check the repository URL."
    return f"Unable to clone {spec.url}: {message}"


def bootstrap_clone(ctx: SetupContext, spec: RepositorySpec) -> None:
    """Plain clone with submodules; only used to obtain the clone tool itself."""

    checkout = spec.checkout_dir(ctx.root)
    if guard.repository_action(checkout) == guard.SKIP:
        ctx.collector.record("skipped", str(checkout))
        return

    logger.info("Installing %s", spec.name)
    outcome = ctx.caps.clone(spec.url, str(checkout))
    if not outcome.ok:
        raise FatalError(describe_clone_failure(spec, outcome.message))
    ctx.collector.record("cloned", str(checkout))


def identity_clone(ctx: SetupContext, spec: RepositorySpec) -> List[str]:
    checkout = spec.checkout_dir(ctx.root)
    if guard.repository_action(checkout) == guard.SKIP:
        ctx.collector.record("skipped", str(checkout))
        return []

    identity = resolve_identity(ctx)
    logger.info("Cloning %s", spec.url)
    outcome = ctx.caps.identity_clone(
        str(ctx.clone_tool_bin),
        spec.url,
        str(checkout),
        email=identity.email,
        args=spec.args,
    )
    if outcome.ok:
        ctx.collector.record("cloned", str(checkout))
        return []

    message = describe_clone_failure(spec, outcome.message)
    if spec.mandatory:
        raise FatalError(message)
    return [message]


def repair_checkout(ctx: SetupContext, checkout: Path) -> List[str]:
    """Re-run the clone tool against an existing plain checkout."""

    identity = resolve_identity(ctx)
    local_email = ctx.caps.git_config_get("user.email", repo=str(checkout))
    if guard.repair_action(local_email, identity.email) == guard.SKIP:
        ctx.collector.record("skipped", f"repair {checkout}")
        return []

    outcome = ctx.caps.repair(str(ctx.clone_tool_bin), str(checkout), email=identity.email)
    if not outcome.ok:
        return [f"Unable to set up identity in {checkout}: {outcome.message}"]
    ctx.collector.record("repaired", str(checkout))
    return []


def ensure_repositories(ctx: SetupContext) -> List[str]:
    """Bootstrap the clone tool, clone every declared repository, then repair.

    Main-project repositories are left alone when that path is toggled off.
    """

    warnings: List[str] = []
    cfg = ctx.config

    bootstrap_clone(ctx, cfg.clone_tool)

    for spec in cfg.repositories:
        if spec.main_project and not ctx.include_main_project:
            logger.info("Main project disabled; not cloning %s", spec.url)
            continue
        if spec.mode == "bootstrap":
            bootstrap_clone(ctx, spec)
        else:
            warnings.extend(identity_clone(ctx, spec))

    # The clone tool's own checkout was plain-cloned above; repair it so it is set up like the rest.
    targets = [ctx.clone_tool_dir]
    if cfg.repair_self:
        # The dotfiles ship inside this tool's own checkout; repair that checkout.
        top = ctx.caps.checkout_root(str(ctx.dotfiles_dir))
        if top is None:
            logger.info("%s is not in a git checkout; nothing to repair", ctx.dotfiles_dir)
        elif Path(top) != ctx.clone_tool_dir:
            targets.append(Path(top))
    for checkout in targets:
        if ctx.dry_run and not checkout.is_dir():
            logger.info("Would repair %s", checkout)
            continue
        warnings.extend(repair_checkout(ctx, checkout))

    return warnings
