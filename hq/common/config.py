"""Load and validate HQ configuration from config.yaml."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("hq")

REPO_DIR = Path(__file__).resolve().parent.parent.parent
_DEFAULT_CONFIG_PATH = REPO_DIR / "config" / "config.yaml"

_DEFAULTS: dict[str, Any] = {
    "log_level": "INFO",
    "drafts": {"max_backups": 10},
    "memory_log": {"retention_days": 0},
    "kanban": {"done_cap": 6},
    "content": {"published_cap": 6},
    "telegram": {},
    "server": {"host": "127.0.0.1", "port": 3000},
}


class ConfigError(ValueError):
    """Raised when HQ cannot run with the given configuration."""


def load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """Load configuration from YAML file, with env-var overrides.

    A missing config file is not an error: HQ can be configured purely from
    the environment. Environment variable overrides (if set):
        HQ_DATA_DIR / DATA_DIR  -> data_dir
        HQ_LOG_DIR              -> log_dir
        TELEGRAM_BOT_TOKEN      -> telegram.bot_token
        TELEGRAM_CHAT_ID        -> telegram.chat_id

    Raises ConfigError when no data directory ends up configured.
    """
    path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
    cfg: dict[str, Any] = {}
    if path.exists():
        with open(path, encoding="utf-8") as fh:
            cfg = yaml.safe_load(fh) or {}
    else:
        logger.info("No config file at %s, using environment only", path)

    for key, value in _DEFAULTS.items():
        if isinstance(value, dict):
            cfg[key] = {**value, **(cfg.get(key) or {})}
        else:
            cfg.setdefault(key, value)

    _env_override(cfg, "DATA_DIR", "data_dir")
    _env_override(cfg, "HQ_DATA_DIR", "data_dir")
    _env_override(cfg, "HQ_LOG_DIR", "log_dir")
    _env_override(cfg, "TELEGRAM_BOT_TOKEN", "telegram", "bot_token")
    _env_override(cfg, "TELEGRAM_CHAT_ID", "telegram", "chat_id")

    _validate(cfg)
    return cfg


def _env_override(cfg: dict, env_key: str, *keys: str) -> None:
    """Override a nested config value from an environment variable."""
    val = os.environ.get(env_key)
    if val is None:
        return
    target = cfg
    for k in keys[:-1]:
        target = target.setdefault(k, {})
    target[keys[-1]] = val


def _validate(cfg: dict[str, Any]) -> None:
    """Validate that the data directory is set; create it if missing."""
    data_dir = cfg.get("data_dir")
    if not data_dir:
        raise ConfigError("data_dir is not set (config.yaml or HQ_DATA_DIR)")
    path = Path(os.path.expanduser(str(data_dir)))
    if path.exists() and not path.is_dir():
        raise ConfigError(f"data_dir is not a directory: {path}")
    cfg["data_dir"] = str(path)

    if not cfg["telegram"].get("bot_token") or not cfg["telegram"].get("chat_id"):
        logger.debug("Telegram not configured, agenda send will be unavailable")


def load_env_local(env_file: Path | None = None) -> None:
    """Load .env.local into os.environ without clobbering existing values."""
    env_file = env_file or REPO_DIR / ".env.local"
    if env_file.is_file():
        for line in env_file.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                os.environ.setdefault(key.strip(), value.strip())


def setup_logging(cfg: dict[str, Any]) -> None:
    """Configure root logging: stderr + rotating file (if log_dir is set)."""
    from logging.handlers import RotatingFileHandler

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    root = logging.getLogger("hq")
    root.setLevel(getattr(logging, str(cfg.get("log_level", "INFO")).upper(), logging.INFO))

    # stderr
    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    root.addHandler(sh)

    if not cfg.get("log_dir"):
        return

    log_dir = Path(os.path.expanduser(str(cfg["log_dir"])))
    log_dir.mkdir(parents=True, exist_ok=True)

    # rotating file
    fh = RotatingFileHandler(log_dir / "hq.log", maxBytes=5_000_000, backupCount=3)
    fh.setFormatter(fmt)
    root.addHandler(fh)
