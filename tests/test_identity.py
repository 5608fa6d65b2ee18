"""Tests for operator identity resolution."""

from __future__ import annotations

import pytest

from devsetup.errors import FatalError
from devsetup.lib import identity as identity_mod
from devsetup.lib.identity import resolve_identity
from fakes import FakeHost, ScriptedPrompt


@pytest.fixture
def blank_host() -> FakeHost:
    return FakeHost()


def test_configured_identity_never_prompts(make_ctx) -> None:
    prompt = ScriptedPrompt()
    ctx = make_ctx(prompt=prompt)

    ident = resolve_identity(ctx)

    assert (ident.name, ident.email) == ("Ada Lovelace", "ada@example.org")
    assert prompt.questions == []


def test_prompts_once_and_persists(make_ctx, blank_host: FakeHost) -> None:
    prompt = ScriptedPrompt({"full name": "Grace Hopper", "email": "grace"})
    ctx = make_ctx(caps=blank_host, prompt=prompt)

    first = resolve_identity(ctx)
    second = resolve_identity(ctx)

    assert first is second
    assert first.email == "grace@example.org"
    assert blank_host.git_config == {"user.name": "Grace Hopper", "orgclone.email": "grace@example.org"}
    assert prompt.asked("full name") == 1
    assert prompt.asked("email") == 1


def test_full_address_is_kept(make_ctx, blank_host: FakeHost) -> None:
    prompt = ScriptedPrompt({"full name": "Grace Hopper", "email": "grace@navy.mil"})
    ident = resolve_identity(make_ctx(caps=blank_host, prompt=prompt))
    assert ident.email == "grace@navy.mil"


def test_empty_email_defaults_to_login(make_ctx, blank_host: FakeHost, monkeypatch) -> None:
    monkeypatch.setattr(identity_mod, "_default_user", lambda: "ghopper")
    prompt = ScriptedPrompt({"full name": "Grace Hopper"})

    ident = resolve_identity(make_ctx(caps=blank_host, prompt=prompt))

    assert ident.email == "ghopper@example.org"


def test_unresolvable_name_is_fatal(make_ctx, blank_host: FakeHost) -> None:
    ctx = make_ctx(caps=blank_host, prompt=ScriptedPrompt())
    with pytest.raises(FatalError, match="user.name"):
        resolve_identity(ctx)
    assert ctx.identity is None
