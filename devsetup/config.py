from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Literal, Optional, Tuple

from .lib.manifests import load_yaml

DotfileMode = Literal["symlink", "copy_with_inclusion", "copy_if_absent"]
CloneMode = Literal["bootstrap", "identity"]

DOTFILE_MODES = ("symlink", "copy_with_inclusion", "copy_if_absent")
CLONE_MODES = ("bootstrap", "identity")


@dataclass(frozen=True)
class DotfileMapping:
    source: str
    mode: DotfileMode = "symlink"
    # Relative to the target root. {path}, {name} and {stem} refer to the matched source.
    dest: str = "{path}"
    marker: Optional[str] = None

    def _fields(self, rel: PurePosixPath) -> Dict[str, str]:
        return {"path": rel.as_posix(), "name": rel.name, "stem": rel.stem}

    def destination_for(self, rel: PurePosixPath) -> PurePosixPath:
        dest = PurePosixPath(self.dest.format(**self._fields(rel)))
        if dest.is_absolute() or ".." in dest.parts:
            raise ValueError(f"Dotfile destination escapes the target root: {dest}")
        return dest

    def marker_for(self, rel: PurePosixPath) -> Optional[str]:
        if self.marker is None:
            return None
        return self.marker.format(**self._fields(rel))


@dataclass(frozen=True)
class RepositorySpec:
    url: str
    # Parent directory relative to the target root.
    dest: str
    mode: CloneMode = "identity"
    mandatory: bool = False
    requires_auth: bool = False
    main_project: bool = False
    args: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        base = self.url.rstrip("/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]
        return base[:-4] if base.endswith(".git") else base

    def checkout_dir(self, root: Path) -> Path:
        return root / self.dest / self.name


@dataclass(frozen=True)
class ToolSpec:
    name: str
    probe: Tuple[str, ...]
    install: Tuple[Tuple[str, ...], ...] = ()
    version_pattern: Optional[str] = None
    hint: str = ""


def _require(obj: Dict[str, Any], key: str, where: str) -> Any:
    if key not in obj or obj[key] in (None, ""):
        raise ValueError(f"{where}: missing required key {key!r}")
    return obj[key]


def _argv(value: Any, where: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(value.split())
    if not isinstance(value, list) or not value:
        raise ValueError(f"{where}: command must be a non-empty list")
    return tuple(str(v) for v in value)


def parse_dotfile(obj: Dict[str, Any]) -> DotfileMapping:
    where = f"dotfiles[{obj.get('source')!r}]"
    mode = str(obj.get("mode") or "symlink")
    if mode not in DOTFILE_MODES:
        raise ValueError(f"{where}: unknown mode {mode!r} (expected one of {', '.join(DOTFILE_MODES)})")
    marker = obj.get("marker")
    if mode == "copy_with_inclusion" and not marker:
        raise ValueError(f"{where}: copy_with_inclusion requires a marker")
    return DotfileMapping(
        source=str(_require(obj, "source", where)),
        mode=mode,  # type: ignore[arg-type]
        dest=str(obj.get("dest") or "{path}"),
        marker=str(marker) if marker else None,
    )


def parse_repository(obj: Dict[str, Any], *, default_dest: str) -> RepositorySpec:
    where = f"repositories[{obj.get('url')!r}]"
    mode = str(obj.get("mode") or "identity")
    if mode not in CLONE_MODES:
        raise ValueError(f"{where}: unknown mode {mode!r}")
    return RepositorySpec(
        url=str(_require(obj, "url", where)),
        dest=str(obj.get("dest") or default_dest),
        mode=mode,  # type: ignore[arg-type]
        mandatory=bool(obj.get("mandatory", False)),
        requires_auth=bool(obj.get("requires_auth", False)),
        main_project=bool(obj.get("main_project", False)),
        args=tuple(str(a) for a in (obj.get("args") or [])),
    )


def parse_tool(obj: Dict[str, Any]) -> ToolSpec:
    where = f"tools[{obj.get('name')!r}]"
    install = obj.get("install") or []
    if install and isinstance(install[0], str):
        # A single command written as a flat list.
        install = [install]
    return ToolSpec(
        name=str(_require(obj, "name", where)),
        probe=_argv(_require(obj, "probe", where), where),
        install=tuple(_argv(cmd, where) for cmd in install),
        version_pattern=obj.get("version_pattern"),
        hint=str(obj.get("hint") or ""),
    )


@dataclass(frozen=True)
class SetupConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _section(self, key: str) -> Dict[str, Any]:
        return self.raw.get(key) or {}

    @property
    def name_key(self) -> str:
        return str(self._section("identity").get("name_key") or "user.name")

    @property
    def email_key(self) -> str:
        return str(self._section("identity").get("email_key") or "devsetup.email")

    @property
    def email_domain(self) -> str:
        return str(self._section("identity").get("email_domain") or "example.org")

    @property
    def repos_dir(self) -> str:
        return str(self._section("paths").get("repos_dir") or "code")

    @property
    def devtools_dir(self) -> str:
        return str(self._section("paths").get("devtools_dir") or f"{self.repos_dir}/devtools")

    @property
    def virtualenv_dir(self) -> str:
        return str(self._section("paths").get("virtualenv_dir") or ".virtualenv/devsetup")

    @property
    def supported_shells(self) -> List[str]:
        return list(self.raw.get("supported_shells") or ["bash", "zsh"])

    @property
    def prerequisites(self) -> List[ToolSpec]:
        return [parse_tool(t) for t in (self.raw.get("prerequisites") or [])]

    @property
    def tools(self) -> List[ToolSpec]:
        return [parse_tool(t) for t in (self.raw.get("tools") or [])]

    @property
    def dotfiles(self) -> List[DotfileMapping]:
        return [parse_dotfile(d) for d in (self.raw.get("dotfiles") or [])]

    @property
    def clone_tool(self) -> RepositorySpec:
        obj = dict(self._section("clone_tool"))
        obj.setdefault("url", "git@github.com:example/org-clone")
        obj["mode"] = "bootstrap"
        obj["mandatory"] = True
        return parse_repository(obj, default_dest=self.devtools_dir)

    @property
    def clone_tool_bin(self) -> str:
        tool = self._section("clone_tool")
        return str(tool.get("bin") or f"bin/{self.clone_tool.name}")

    @property
    def repair_self(self) -> bool:
        return bool(self._section("clone_tool").get("repair_self", False))

    @property
    def repositories(self) -> List[RepositorySpec]:
        return [parse_repository(r, default_dest=self.devtools_dir) for r in (self.raw.get("repositories") or [])]

    @property
    def main_project(self) -> Optional[RepositorySpec]:
        return next((r for r in self.repositories if r.main_project), None)

    @property
    def cloud_setup(self) -> Optional[ToolSpec]:
        obj = self.raw.get("cloud_setup")
        return parse_tool(dict(obj, name=obj.get("name") or "cloud-sdk")) if obj else None

    def build_target(self, name: str) -> Tuple[str, ...]:
        targets = self._section("build_targets")
        cmd = targets.get(name)
        return _argv(cmd, f"build_targets.{name}") if cmd else ()

    @property
    def data_dump_artifact(self) -> str:
        return str(self._section("data_dump").get("artifact") or "datastore/current.sqlite")

    @property
    def auth_tool(self) -> Dict[str, Any]:
        return self._section("auth_tool")

    @property
    def auth_command(self) -> Tuple[str, ...]:
        cmd = self.auth_tool.get("command")
        return _argv(cmd, "auth_tool.command") if cmd else ()

    @property
    def services(self) -> List[Dict[str, Any]]:
        return list(self.raw.get("services") or [])

    # System manifest (manifests/system.yaml)

    @property
    def apt_packages(self) -> List[str]:
        return [str(p).strip() for p in (self.raw.get("apt_packages") or []) if str(p).strip()]

    @property
    def use_sudo(self) -> bool:
        return bool(self.raw.get("use_sudo", True))

    @property
    def toolchains(self) -> List[ToolSpec]:
        return [parse_tool(t) for t in (self.raw.get("toolchains") or [])]

    def validate(self) -> None:
        """Parse every section so a malformed manifest fails before anything runs."""
        _ = (self.clone_tool, self.prerequisites, self.tools, self.cloud_setup, self.toolchains, self.auth_command)
        for mapping in self.dotfiles:
            # Absolute or ../ destinations fail here, before anything is installed.
            mapping.destination_for(PurePosixPath("sample"))
        if sum(1 for r in self.repositories if r.main_project) > 1:
            raise ValueError("repositories: at most one entry may set main_project")


def load_setup_config(path: str | Path) -> SetupConfig:
    cfg = SetupConfig(raw=load_yaml(path))
    cfg.validate()
    return cfg
