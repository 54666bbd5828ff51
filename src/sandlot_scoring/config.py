from __future__ import annotations

from dataclasses import dataclass

from config import ConfigurationSet, config_from_dict, config_from_env, config_from_yaml

from sandlot_scoring.domain.game import DEFAULT_MAX_INNINGS


class ScoringConfigError(Exception):
    """Raised when scoring configuration is invalid."""


@dataclass(frozen=True)
class ScoringSettings:
    db_path: str = "~/.config/sandlot/scoring.db"
    max_innings: int = DEFAULT_MAX_INNINGS
    max_innings_ceiling: int = 10
    writer_id: str = "scorer"


_DEFAULTS: dict[str, object] = {
    "db": {
        "path": "~/.config/sandlot/scoring.db",
    },
    "scoring": {
        "max_innings": DEFAULT_MAX_INNINGS,
        "max_innings_ceiling": 10,
        "writer_id": "scorer",
    },
}


def create_config(
    yaml_path: str = "sandlot.yaml",
    env_prefix: str = "SANDLOT",
    defaults: dict[str, object] | None = None,
    *,
    overrides: dict[str, object] | None = None,
) -> ConfigurationSet:
    """Create a layered configuration.

    Priority (highest to lowest): explicit overrides > env vars > YAML file > defaults dict.

    Args:
        yaml_path: Path to the YAML config file.
        env_prefix: Prefix for environment variables (``SANDLOT__DB__PATH``).
        defaults: Default configuration values.
        overrides: Values passed explicitly, e.g. from CLI options.
    """
    if defaults is None:
        defaults = _DEFAULTS

    layers = [
        config_from_env(env_prefix, separator="__", lowercase_keys=True),
        config_from_yaml(yaml_path, read_from_file=True, ignore_missing_paths=True),
        config_from_dict(defaults),
    ]
    if overrides:
        layers.insert(0, config_from_dict(overrides))

    return ConfigurationSet(*layers)


def _int_setting(cfg: ConfigurationSet, key: str) -> int:
    # Environment values arrive as strings.
    raw = str(cfg[key])
    try:
        return int(raw)
    except ValueError:
        raise ScoringConfigError(f"'{key}' must be an integer, got '{raw}'") from None


def load_scoring_settings(cfg: ConfigurationSet | None = None) -> ScoringSettings:
    if cfg is None:
        cfg = create_config()
    max_innings = _int_setting(cfg, "scoring.max_innings")
    ceiling = _int_setting(cfg, "scoring.max_innings_ceiling")
    writer_id = str(cfg["scoring.writer_id"]).strip()
    db_path = str(cfg["db.path"]).strip()

    if max_innings < 1:
        raise ScoringConfigError(f"scoring.max_innings must be >= 1, got {max_innings}")
    if ceiling < max_innings:
        raise ScoringConfigError(
            f"scoring.max_innings_ceiling ({ceiling}) must be >= scoring.max_innings ({max_innings})"
        )
    if not writer_id:
        raise ScoringConfigError("scoring.writer_id must not be empty")
    if not db_path:
        raise ScoringConfigError("db.path must not be empty")

    return ScoringSettings(
        db_path=db_path,
        max_innings=max_innings,
        max_innings_ceiling=ceiling,
        writer_id=writer_id,
    )
