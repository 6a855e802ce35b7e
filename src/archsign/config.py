"""
archsign - Configuration

Loads config from:
  1. Defaults
  2. Config file (CLI --config, else <workspace>/.archsign/config.json|yaml)
  3. Environment variables (ARCHSIGN_*)
  4. Explicit CLI flags

Secrets (storepass, keypass) may be written encrypted as ``{token}`` and are
decrypted later by the credential service, never here.
"""
from __future__ import annotations

import copy
import dataclasses
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from archsign.errors import ConfigurationError
from archsign.scan import DEFAULT_INCLUDES, split_patterns

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("config.json", "config.yaml", "config.yml")

DEFAULT_CONFIG: dict[str, Any] = {
    "verbose": False,
    "skip": False,
    "keystore": None,
    "storetype": None,
    "storepass": None,
    "alias": None,
    "provider_name": None,
    "provider_class": None,
    "provider_arg": None,
    "max_memory": None,
    "working_directory": None,
    "arguments": [],
    "protected_authentication_path": False,
    # Input selection
    "archive": None,
    "archive_directory": None,
    "includes": [DEFAULT_INCLUDES],
    "excludes": [],
    "process_main_artifact": True,
    "process_attached_artifacts": True,
    # Deprecated switch for attachments; only an explicit False has effect.
    "attachments": None,
    "include_classifiers": [],
    "exclude_classifiers": [],
    "project_manifest": None,
    # Execution
    "threads": 1,
    "toolchains_file": None,
    "tool_timeout": None,
    "sign": {
        "keypass": None,
        "sigfile": None,
        "tsa": None,
        "tsacert": None,
        "remove_existing_signatures": False,
    },
    "verify": {
        "certs": False,
        "error_when_not_signed": False,
    },
}

# env var -> (config path, kind)
_ENV_OVERRIDES: list[tuple[str, tuple[str, ...], str]] = [
    ("ARCHSIGN_VERBOSE", ("verbose",), "bool"),
    ("ARCHSIGN_SKIP", ("skip",), "bool"),
    ("ARCHSIGN_KEYSTORE", ("keystore",), "str"),
    ("ARCHSIGN_STORETYPE", ("storetype",), "str"),
    ("ARCHSIGN_STOREPASS", ("storepass",), "str"),
    ("ARCHSIGN_ALIAS", ("alias",), "str"),
    ("ARCHSIGN_PROVIDER_NAME", ("provider_name",), "str"),
    ("ARCHSIGN_PROVIDER_CLASS", ("provider_class",), "str"),
    ("ARCHSIGN_PROVIDER_ARG", ("provider_arg",), "str"),
    ("ARCHSIGN_MAX_MEMORY", ("max_memory",), "str"),
    ("ARCHSIGN_ARGUMENTS", ("arguments",), "list"),
    ("ARCHSIGN_PROTECTED_AUTHENTICATION_PATH", ("protected_authentication_path",), "bool"),
    ("ARCHSIGN_ARCHIVE", ("archive",), "str"),
    ("ARCHSIGN_ARCHIVE_DIRECTORY", ("archive_directory",), "str"),
    ("ARCHSIGN_PROCESS_MAIN_ARTIFACT", ("process_main_artifact",), "bool"),
    ("ARCHSIGN_PROCESS_ATTACHED_ARTIFACTS", ("process_attached_artifacts",), "bool"),
    ("ARCHSIGN_ATTACHMENTS", ("attachments",), "bool"),
    ("ARCHSIGN_THREADS", ("threads",), "int"),
    ("ARCHSIGN_KEYPASS", ("sign", "keypass"), "str"),
    ("ARCHSIGN_SIGFILE", ("sign", "sigfile"), "str"),
    ("ARCHSIGN_TSA", ("sign", "tsa"), "str"),
    ("ARCHSIGN_TSACERT", ("sign", "tsacert"), "str"),
    ("ARCHSIGN_REMOVE_EXISTING_SIGNATURES", ("sign", "remove_existing_signatures"), "bool"),
    ("ARCHSIGN_CERTS", ("verify", "certs"), "bool"),
    ("ARCHSIGN_ERROR_WHEN_NOT_SIGNED", ("verify", "error_when_not_signed"), "bool"),
]


@dataclass
class SignOptions:
    keypass: Optional[str] = None
    sigfile: Optional[str] = None
    tsa: Optional[str] = None
    tsacert: Optional[str] = None
    remove_existing_signatures: bool = False


@dataclass
class VerifyOptions:
    certs: bool = False
    error_when_not_signed: bool = False


@dataclass
class SignerConfig:
    """Typed view over the merged configuration."""
    verbose: bool = False
    skip: bool = False
    keystore: Optional[str] = None
    storetype: Optional[str] = None
    storepass: Optional[str] = None
    alias: Optional[str] = None
    provider_name: Optional[str] = None
    provider_class: Optional[str] = None
    provider_arg: Optional[str] = None
    max_memory: Optional[str] = None
    working_directory: Optional[Path] = None
    arguments: list[str] = field(default_factory=list)
    protected_authentication_path: bool = False
    archive: Optional[Path] = None
    archive_directory: Optional[Path] = None
    includes: list[str] = field(default_factory=lambda: [DEFAULT_INCLUDES])
    excludes: list[str] = field(default_factory=list)
    process_main_artifact: bool = True
    process_attached_artifacts: bool = True
    attachments: Optional[bool] = None
    include_classifiers: list[str] = field(default_factory=list)
    exclude_classifiers: list[str] = field(default_factory=list)
    project_manifest: Optional[Path] = None
    threads: int = 1
    toolchains_file: Optional[Path] = None
    tool_timeout: Optional[float] = None
    sign: SignOptions = field(default_factory=SignOptions)
    verify: VerifyOptions = field(default_factory=VerifyOptions)

    @property
    def attachments_enabled(self) -> bool:
        return self.process_attached_artifacts and self.attachments is not False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SignerConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))

        values: dict[str, Any] = {k: v for k, v in data.items() if k in known}
        for key in ("working_directory", "archive", "archive_directory", "project_manifest", "toolchains_file"):
            if values.get(key):
                values[key] = Path(os.path.expanduser(str(values[key])))
            else:
                values[key] = None
        for key in ("includes", "excludes"):
            if key in values:
                values[key] = split_patterns(values[key])
        for key in ("arguments", "include_classifiers", "exclude_classifiers"):
            if key in values:
                values[key] = _as_list(values[key])
        if "threads" in values:
            values["threads"] = _coerce_int(values["threads"], "threads")
        if values.get("tool_timeout") is not None:
            values["tool_timeout"] = _coerce_float(values["tool_timeout"], "tool_timeout")
        values["sign"] = _sub_options(SignOptions, values.get("sign"))
        values["verify"] = _sub_options(VerifyOptions, values.get("verify"))
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        for key, value in data.items():
            if isinstance(value, Path):
                data[key] = str(value)
        return data


def load_config(
    config_path: Optional[Path] = None,
    workspace: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> SignerConfig:
    """Load and merge every configuration layer into a SignerConfig."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    file_path = _resolve_config_file(config_path, workspace)
    if file_path is not None:
        config = _merge(config, _read_config_file(file_path))
        logger.debug("Loaded config from %s", file_path)
    else:
        logger.debug("Using defaults (no config file found)")

    _apply_env_overrides(config)
    if overrides:
        config = _merge(config, _drop_none(overrides))
    return SignerConfig.from_dict(config)


def _resolve_config_file(config_path: Optional[Path], workspace: Optional[Path]) -> Optional[Path]:
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        return path
    base = Path(workspace) if workspace else Path.cwd()
    for name in CONFIG_FILE_NAMES:
        candidate = base / ".archsign" / name
        if candidate.exists():
            return candidate
    return None


def _read_config_file(path: Path) -> dict:
    try:
        text = path.read_text()
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read config {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must contain a mapping")
    return data


def _merge(base: dict, override: dict) -> dict:
    """Deep merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _drop_none(data: dict) -> dict:
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = _drop_none(value)
        elif value is not None:
            result[key] = value
    return result


def _apply_env_overrides(config: dict) -> None:
    """Apply ARCHSIGN_* env var overrides after file/default loading."""
    for env_name, path, kind in _ENV_OVERRIDES:
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            value = _convert(raw, kind)
        except ValueError:
            logger.warning("Ignoring invalid %s=%r", env_name, raw)
            continue
        target = config
        for part in path[:-1]:
            target = target.setdefault(part, {})
        target[path[-1]] = value


def _convert(raw: str, kind: str) -> Any:
    if kind == "bool":
        return _to_bool(raw)
    if kind == "int":
        return int(raw)
    if kind == "list":
        return _as_list(raw)
    return raw


def _to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(value)


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item) for item in value]


def _coerce_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


def _coerce_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e


def _sub_options(cls, data: Any):
    if isinstance(data, (SignOptions, VerifyOptions)):
        return data
    data = data or {}
    known = {f.name for f in dataclasses.fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


__all__ = ["DEFAULT_CONFIG", "SignerConfig", "SignOptions", "VerifyOptions", "load_config"]
