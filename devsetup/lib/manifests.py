from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml


def package_root() -> Path:
    # devsetup/lib/manifests.py -> devsetup; manifests/ and dotfiles/ ship as package data
    return Path(__file__).resolve().parents[1]


def default_setup_manifest() -> Path:
    return package_root() / "manifests" / "setup.yaml"


def default_system_manifest() -> Path:
    return package_root() / "manifests" / "system.yaml"


def default_dotfiles_dir() -> Path:
    return package_root() / "dotfiles"


def load_yaml(path: str | Path) -> Dict[str, Any]:
    """Load a YAML manifest that must contain a mapping."""

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(str(p))
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError(f"Manifest must be YAML: {p}")

    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {p}")
    return data
