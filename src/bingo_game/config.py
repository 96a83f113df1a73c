from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .catalog import CARD_ID_MAX, DEFAULT_CATALOG_SEED

ENV_PREFIX = "BINGO_GAME_"

DEFAULTS: Dict[str, Any] = {
    # timings, seconds
    "selection_seconds": 45,
    "game_seconds": 30,
    "call_interval_seconds": 3.0,
    "resolve_hold_seconds": 3.0,
    "claim_feedback_seconds": 1.0,
    # selection board
    "taken_probability": 0.2,
    "card_id_max": CARD_ID_MAX,
    "stake": 10,
    # randomness
    "seed": {"engine": "py_random", "value": None},
    "catalog_seed": DEFAULT_CATALOG_SEED,
    "catalog_path": None,
    # output & UX
    "colors": "auto",
    "log_level": "INFO",
    "log_format": "text",
    "log_file": None,
}

_INT_KEYS = {"selection_seconds", "game_seconds", "card_id_max", "stake", "catalog_seed", "seed.value"}
_FLOAT_KEYS = {
    "call_interval_seconds",
    "resolve_hold_seconds",
    "claim_feedback_seconds",
    "taken_probability",
}
_PATH_KEYS = ("catalog_path", "log_file", "out_transcript")


def read_mapping_file(path: Path) -> Dict[str, Any]:
    """Load a YAML or JSON file whose top level is a mapping."""
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
        kind = "YAML"
    elif suffix == ".json":
        data = json.loads(text)
        kind = "JSON"
    else:
        raise ValueError(f"Unsupported file extension: {suffix}")
    if not isinstance(data, dict):
        raise ValueError(f"Top-level {kind} content must be a mapping: {path}")
    return data


def _collect_env_vars(env: Mapping[str, str]) -> Dict[str, Any]:
    """Map BINGO_GAME_* variables to config keys.

    The key is the upper-cased config key with dots as underscores, e.g.
    BINGO_GAME_GAME_SECONDS or BINGO_GAME_SEED_VALUE. Unknown names are ignored.
    """
    keys = [k for k in DEFAULTS if k != "seed"] + ["seed.engine", "seed.value", "out_transcript"]
    result: Dict[str, Any] = {}
    for cfg_key in keys:
        env_key = ENV_PREFIX + cfg_key.replace(".", "_").upper()
        if env_key not in env:
            continue
        raw = env[env_key]
        try:
            if cfg_key in _INT_KEYS:
                result[cfg_key] = int(raw)
            elif cfg_key in _FLOAT_KEYS:
                result[cfg_key] = float(raw)
            else:
                result[cfg_key] = raw
        except ValueError:
            # left as text; SessionSettings reports the bad value
            result[cfg_key] = raw
    return result


def _set_nested(config: Dict[str, Any], dotted_key: str, value: Any) -> None:
    parts = dotted_key.split(".")
    cursor = config
    for part in parts[:-1]:
        if not isinstance(cursor.get(part), dict):
            cursor[part] = {}
        cursor = cursor[part]
    cursor[parts[-1]] = value


def _apply_overrides(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = json.loads(json.dumps(base))  # deep copy via JSON
    for key, value in overrides.items():
        if "." in key:
            _set_nested(merged, key, value)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def canonical_json_dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=True, sort_keys=True, separators=(",", ":"))


def compute_params_hash(resolved: Mapping[str, Any]) -> str:
    """Hash of the settings that change game behaviour (not logging or paths)."""
    include = (
        "selection_seconds",
        "game_seconds",
        "call_interval_seconds",
        "resolve_hold_seconds",
        "claim_feedback_seconds",
        "taken_probability",
        "card_id_max",
        "catalog_seed",
        "seed",
    )
    contract = {key: resolved[key] for key in include if key in resolved}
    digest = hashlib.sha256(canonical_json_dumps(contract).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"


def resolve_paths(
    resolved: Dict[str, Any],
    config_file: Path | None,
    cli_overrides: Mapping[str, Any],
) -> Dict[str, Any]:
    """Paths from the config file are relative to its directory, CLI paths to the CWD."""
    cwd = Path.cwd()
    cfg_dir = config_file.parent if config_file else None
    result = dict(resolved)
    for key in _PATH_KEYS:
        value = resolved.get(key)
        if value is None or value == "":
            continue
        p = Path(str(value))
        if not p.is_absolute():
            base = cwd if key in cli_overrides else (cfg_dir or cwd)
            p = (base / p).resolve()
        result[key] = str(p)
    return result


def resolve_parameters(
    *,
    config_path_str: str | None,
    cli_overrides: Mapping[str, Any],
    env: Mapping[str, str] | None = None,
) -> Tuple[Dict[str, Any], str, Path | None]:
    """Resolve parameters with precedence CLI > ENV > config > defaults.

    Returns (resolved_params, params_hash, config_path)
    """
    config_path = Path(config_path_str).resolve() if config_path_str else None
    file_cfg = read_mapping_file(config_path) if config_path else {}
    env_map = _collect_env_vars(os.environ if env is None else env)

    merged = _apply_overrides(DEFAULTS, file_cfg)
    merged = _apply_overrides(merged, env_map)
    merged = _apply_overrides(merged, cli_overrides)
    merged = resolve_paths(merged, config_path, cli_overrides)

    return merged, compute_params_hash(merged), config_path


@dataclass(frozen=True)
class SessionSettings:
    selection_seconds: int = DEFAULTS["selection_seconds"]
    game_seconds: int = DEFAULTS["game_seconds"]
    call_interval_seconds: float = DEFAULTS["call_interval_seconds"]
    resolve_hold_seconds: float = DEFAULTS["resolve_hold_seconds"]
    claim_feedback_seconds: float = DEFAULTS["claim_feedback_seconds"]
    taken_probability: float = DEFAULTS["taken_probability"]
    card_id_max: int = DEFAULTS["card_id_max"]
    stake: int = DEFAULTS["stake"]

    def __post_init__(self) -> None:
        if self.selection_seconds < 1 or self.game_seconds < 1:
            raise ValueError("selection_seconds and game_seconds must be at least 1")
        for name in ("call_interval_seconds", "resolve_hold_seconds", "claim_feedback_seconds"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if not 0.0 <= self.taken_probability <= 1.0:
            raise ValueError("taken_probability must be within [0, 1]")
        if not 1 <= self.card_id_max <= CARD_ID_MAX:
            raise ValueError(f"card_id_max must be within [1, {CARD_ID_MAX}]")
        if self.stake <= 0:
            raise ValueError("stake must be positive")

    @classmethod
    def from_resolved(cls, resolved: Mapping[str, Any]) -> "SessionSettings":
        def num(key: str, kind: type) -> Any:
            raw = resolved.get(key, DEFAULTS[key])
            try:
                return kind(raw)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid value for {key}: {raw!r}") from None

        return cls(
            selection_seconds=num("selection_seconds", int),
            game_seconds=num("game_seconds", int),
            call_interval_seconds=num("call_interval_seconds", float),
            resolve_hold_seconds=num("resolve_hold_seconds", float),
            claim_feedback_seconds=num("claim_feedback_seconds", float),
            taken_probability=num("taken_probability", float),
            card_id_max=num("card_id_max", int),
            stake=num("stake", int),
        )


def seed_of(resolved: Mapping[str, Any]) -> Tuple[str, Optional[int]]:
    seed = resolved.get("seed") or {}
    engine = str(seed.get("engine") or "py_random")
    value = seed.get("value")
    if value is None or value == "":
        return engine, None
    try:
        return engine, int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid seed value: {value!r}") from None
