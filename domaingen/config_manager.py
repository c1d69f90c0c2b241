"""ConfigManager — layered configuration for the CLI and engine factory."""

from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _log_level(value: str) -> bool:
    return value.upper() in _LOG_LEVELS


def _non_negative_float(value: str) -> bool:
    try:
        number = float(value)
    except ValueError:
        return False
    return math.isfinite(number) and number >= 0


def _positive_int(value: str) -> bool:
    try:
        return int(value) > 0
    except ValueError:
        return False


def _any(value: str) -> bool:
    return True


# All known configuration keys with defaults and the check a loaded value must pass
_CONFIG_KEYS: dict[str, dict[str, Any]] = {
    "DOMAINGEN_ENV": {
        "default": "development", "description": "Environment profile",
        "check": lambda v: v in _PROFILES,
    },
    "DOMAINGEN_LOG_LEVEL": {"default": "INFO", "description": "Logging level", "check": _log_level},
    "DOMAINGEN_RULES_PATH": {
        "default": "", "description": "Rule tables JSON (empty = seed data)", "check": _any,
    },
    "DOMAINGEN_BENCH_TOLERANCE": {
        "default": "0.05", "description": "Allowed benchmark slowdown", "check": _non_negative_float,
    },
    "DOMAINGEN_BENCH_ITERATIONS": {
        "default": "2000", "description": "Benchmark iterations", "check": _positive_int,
    },
    "DOMAINGEN_CACHE_TTL": {
        "default": "3600", "description": "Default cache TTL in seconds", "check": _positive_int,
    },
}

_PROFILES: dict[str, dict[str, str]] = {
    "development": {
        "DOMAINGEN_ENV": "development",
        "DOMAINGEN_LOG_LEVEL": "DEBUG",
    },
    "production": {
        "DOMAINGEN_ENV": "production",
        "DOMAINGEN_LOG_LEVEL": "WARNING",
    },
    "testing": {
        "DOMAINGEN_ENV": "testing",
        "DOMAINGEN_LOG_LEVEL": "DEBUG",
        "DOMAINGEN_BENCH_ITERATIONS": "200",
    },
}


class ConfigManager:
    """Manage domaingen configuration across environments."""

    def generate_env_template(self, project_path: str | Path, overwrite: bool = False) -> Path:
        """Write ``.env.example`` listing every known key at its default.

        Raises FileExistsError if the file exists and *overwrite* is false.
        """
        env_path = Path(project_path) / ".env.example"
        if env_path.exists() and not overwrite:
            raise FileExistsError(f"{env_path} already exists")

        lines = [
            "# domaingen configuration template",
            "# Copy to .env; invalid values fall back to the defaults shown",
            f"# Profiles: {', '.join(_PROFILES)}",
            "",
        ]
        for key, info in _CONFIG_KEYS.items():
            lines.append(f"# {info['description']}")
            lines.append(f"{key}={info['default']}")
            lines.append("")

        env_path.write_text("\n".join(lines), encoding="utf-8")
        logger.info("Wrote configuration template %s", env_path)
        return env_path

    def load_config(self, project_path: str | Path = ".") -> dict[str, str]:
        """Load merged config: defaults -> profile -> config.json -> .env -> env vars.

        Returns a flat dict of configuration values.
        """
        root = Path(project_path)
        config: dict[str, str] = {}

        # 1. Defaults
        for key, info in _CONFIG_KEYS.items():
            config[key] = str(info["default"])

        # 2. Profile overrides
        env_name = os.environ.get("DOMAINGEN_ENV", config["DOMAINGEN_ENV"])
        config.update(_PROFILES.get(env_name, {}))

        # 3. .domaingen/config.json
        config_json = root / ".domaingen" / "config.json"
        if config_json.is_file():
            try:
                data = json.loads(config_json.read_text(encoding="utf-8"))
                for k, v in data.items():
                    config[k] = str(v)
            except (json.JSONDecodeError, OSError):
                logger.debug("Could not read config.json", exc_info=True)

        # 4. .env file
        env_file = root / ".env"
        if env_file.is_file():
            try:
                for line in env_file.read_text(encoding="utf-8").splitlines():
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    if "=" in line:
                        k, v = line.split("=", 1)
                        config[k.strip()] = v.strip()
            except OSError:
                logger.debug("Could not read .env", exc_info=True)

        # 5. Environment variables override all
        for key in _CONFIG_KEYS:
            env_val = os.environ.get(key)
            if env_val is not None:
                config[key] = env_val

        # 6. Known keys must hold usable values
        for key, info in _CONFIG_KEYS.items():
            if not info["check"](config[key]):
                logger.warning(
                    "Invalid value for %s: %r; using default %r", key, config[key], info["default"],
                )
                config[key] = str(info["default"])

        return config


def get_float(config: dict[str, str], key: str) -> float:
    """Read a float setting, falling back to the declared default."""
    try:
        return float(config.get(key, _CONFIG_KEYS[key]["default"]))
    except ValueError:
        logger.warning("Invalid value for %s: %r; using default", key, config.get(key))
        return float(_CONFIG_KEYS[key]["default"])


def get_int(config: dict[str, str], key: str) -> int:
    """Read an integer setting, falling back to the declared default."""
    try:
        return int(config.get(key, _CONFIG_KEYS[key]["default"]))
    except ValueError:
        logger.warning("Invalid value for %s: %r; using default", key, config.get(key))
        return int(_CONFIG_KEYS[key]["default"])
