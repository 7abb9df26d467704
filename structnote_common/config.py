from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .records import IDENTIFIER_POLICIES
from .sheets import CAPPED_SCOPES

load_dotenv()

CONFIG_ENV_KEY = "STRUCTNOTE_CONFIG"
DEFAULT_CONFIG_PATH = Path("structnote.yaml")
# Enumerated settings compared case-insensitively.
NORMALIZED_KEYS = ("identifier_policy", "capped_column_scope")


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    output_filename: str = "ExtractedXML_Data.xlsx"
    identifier_policy: str = "cusip_or_isin"
    grouped_export: bool = True
    single_sheet_name: str = "Scenario List"
    capped_column_scope: str = "filtered_set"
    column_width_margin: int = 2
    empty_column_width: int = 12
    header_fill: str = "#DDEBF7"
    font_name: str = "Arial"
    font_size: int = 10


def _validate(settings: Settings) -> Settings:
    if settings.identifier_policy not in IDENTIFIER_POLICIES:
        raise ConfigError(
            f"identifier_policy must be one of {', '.join(IDENTIFIER_POLICIES)}; got {settings.identifier_policy!r}"
        )
    if settings.capped_column_scope not in CAPPED_SCOPES:
        raise ConfigError(
            f"capped_column_scope must be one of {', '.join(CAPPED_SCOPES)}; got {settings.capped_column_scope!r}"
        )
    if settings.column_width_margin < 0 or settings.empty_column_width <= 0:
        raise ConfigError("Column widths must be positive")
    return settings


def _from_mapping(raw: Dict[str, Any]) -> Settings:
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    defaults = Settings()
    for name, value in raw.items():
        current = getattr(defaults, name)
        try:
            if isinstance(current, bool):
                values[name] = value if isinstance(value, bool) else _parse_bool(str(value), current)
            elif isinstance(current, int):
                values[name] = int(value)
            else:
                values[name] = str(value)
            if name in NORMALIZED_KEYS:
                values[name] = values[name].strip().lower()
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for {name}: {value!r}") from exc
    return replace(defaults, **values)


def _apply_env_overrides(settings: Settings) -> Settings:
    overrides: Dict[str, Any] = {}
    if os.getenv("STRUCTNOTE_OUTPUT"):
        overrides["output_filename"] = os.environ["STRUCTNOTE_OUTPUT"]
    if os.getenv("STRUCTNOTE_ID_POLICY"):
        overrides["identifier_policy"] = os.environ["STRUCTNOTE_ID_POLICY"].strip().lower()
    if os.getenv("STRUCTNOTE_GROUPED_EXPORT") is not None:
        overrides["grouped_export"] = _parse_bool(os.getenv("STRUCTNOTE_GROUPED_EXPORT"), settings.grouped_export)
    return replace(settings, **overrides) if overrides else settings


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from YAML, then apply environment overrides.

    The path defaults to ``$STRUCTNOTE_CONFIG`` or ``structnote.yaml`` in the
    working directory. A missing default file is not an error: defaults apply.
    A file named by ``path`` or ``$STRUCTNOTE_CONFIG`` that does not exist is.
    """

    env_path = os.getenv(CONFIG_ENV_KEY)
    explicit = path is not None or bool(env_path)
    config_path = Path(path) if path is not None else Path(env_path or DEFAULT_CONFIG_PATH)

    raw: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open("r", encoding="utf-8") as handle:
                raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path} must contain a mapping of settings")
    elif explicit:
        raise ConfigError(f"Configuration file not found: {config_path}")

    return _validate(_apply_env_overrides(_from_mapping(raw)))
