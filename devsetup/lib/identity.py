from __future__ import annotations

import getpass
import logging

from ..context import SetupContext, UserIdentity
from ..errors import FatalError

logger = logging.getLogger(__name__)


def _default_user() -> str:
    try:
        return getpass.getuser()
    except Exception:
        return ""


def _resolve_key(ctx: SetupContext, key: str, question: str, *, transform=None) -> str:
    caps = ctx.caps
    value = caps.git_config_get(key)
    if value:
        return value

    answer = ctx.prompt(question).strip()
    if transform is not None:
        answer = transform(answer)
    if answer:
        outcome = caps.git_config_set(key, answer)
        if not outcome.ok:
            raise FatalError(f"Unable to store git config {key}: {outcome.message}")
        value = caps.git_config_get(key)
        if ctx.dry_run and not value:
            value = answer
    if not value:
        raise FatalError(f"Unable to determine git config {key}; re-run and enter a value when prompted.")
    return value


def resolve_identity(ctx: SetupContext) -> UserIdentity:
    """Return the operator identity, prompting for whatever is not configured.

    The result is cached on the context; later callers never prompt again.
    """

    if ctx.identity is not None:
        return ctx.identity

    cfg = ctx.config
    name = _resolve_key(ctx, cfg.name_key, "Enter your full name (First Last): ")

    user = _default_user()
    domain = cfg.email_domain

    def to_email(answer: str) -> str:
        answer = answer or user
        if not answer:
            return ""
        return answer if "@" in answer else f"{answer}@{domain}"

    email = _resolve_key(
        ctx,
        cfg.email_key,
        f"Enter your {domain} email, without the @{domain} ({user}): ",
        transform=to_email,
    )

    ctx.identity = UserIdentity(name=name, email=email)
    logger.info("Using identity %s <%s>", name, email)
    return ctx.identity
