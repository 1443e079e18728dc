# config.py
import argparse
import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from errors import ConfigError

APP_NAME = "aic-tui"
VERSION = "0.3.0"
ENV_PREFIX = "AIC_TUI"
ALPHABETS = ("standard", "blocks", "minimal", "letters")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _xdg_dir(variable: str, fallback: str) -> Path:
    base = os.environ.get(variable)
    return (Path(base) if base else Path.home() / fallback) / APP_NAME


@dataclass
class Config:
    """Holds all application configuration."""
    query: str = "waves"
    tick_rate: float = 4.0
    frame_rate: float = 60.0
    alphabet: str = "standard"
    invert: bool = False
    use_cache: bool = True
    search_limit: int = 25
    request_timeout: float = 30.0
    image_width: int = 843
    api_base_url: str = "https://api.artic.edu/api/v1"
    iiif_base_url: str = "https://www.artic.edu/iiif/2"
    contact: str = "aic-tui@users.noreply.github.com"
    data_dir: Path = Path(".")
    config_dir: Path = Path(".")
    log_level: str = "INFO"

    @property
    def settings_file(self) -> Path:
        return self.config_dir / "config.json"

    @property
    def log_file(self) -> Path:
        return self.data_dir / f"{APP_NAME}.log"

    @property
    def image_cache_dir(self) -> Path:
        return self.data_dir / "images"

    @property
    def user_agent(self) -> str:
        return f"{APP_NAME}/{VERSION}"

    def validate(self) -> "Config":
        if self.tick_rate < 0 or self.frame_rate < 0:
            raise ConfigError("tick and frame rates must be zero or positive")
        if self.alphabet not in ALPHABETS:
            raise ConfigError(f"unknown alphabet '{self.alphabet}', expected one of {', '.join(ALPHABETS)}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"unknown log level '{self.log_level}'")
        if self.search_limit < 1:
            raise ConfigError("search_limit must be at least 1")
        if not self.query.strip():
            raise ConfigError("the search query cannot be empty")
        return self


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"expected a boolean, got '{value}'")


def from_env(base: Optional[Config] = None) -> Config:
    """Applies the AIC_TUI_* environment variables on top of `base`."""
    load_dotenv(override=False)
    config = base or Config()
    env = os.environ
    data_dir = env.get(f"{ENV_PREFIX}_DATA")
    config_dir = env.get(f"{ENV_PREFIX}_CONFIG")
    config = replace(
        config,
        data_dir=Path(data_dir) if data_dir else _xdg_dir("XDG_DATA_HOME", ".local/share"),
        config_dir=Path(config_dir) if config_dir else _xdg_dir("XDG_CONFIG_HOME", ".config"),
        log_level=env.get(f"{ENV_PREFIX}_LOGLEVEL", config.log_level).upper(),
    )
    if f"{ENV_PREFIX}_USE_CACHE" in env:
        config = replace(config, use_cache=_parse_bool(env[f"{ENV_PREFIX}_USE_CACHE"]))
    return config


def from_settings_file(config: Config) -> Config:
    """Merges a JSON settings file over `config`. A missing file is not an error."""
    path = config.settings_file
    if not path.exists():
        return config
    try:
        with open(path, "r", encoding="utf-8") as f:
            settings = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"could not read settings file {path}: {e}") from e
    if not isinstance(settings, dict):
        raise ConfigError(f"settings file {path} must contain a JSON object")

    types = {f.name: f.type for f in fields(Config) if f.name not in ("data_dir", "config_dir")}
    overrides = {}
    for key, value in settings.items():
        if key not in types:
            raise ConfigError(f"unknown setting '{key}' in {path}")
        overrides[key] = _coerce(key, value, types[key])
    return replace(config, **overrides)


def _coerce(key: str, value, kind: type):
    """Converts a JSON value to the type of the Config field it sets."""
    if isinstance(value, (list, dict)) or value is None:
        raise ConfigError(f"setting '{key}' must be a single {kind.__name__}")
    if kind is bool:
        return value if isinstance(value, bool) else _parse_bool(str(value))
    if kind is str:
        return str(value)
    if isinstance(value, bool):
        raise ConfigError(f"setting '{key}' must be a {kind.__name__}, got {value}")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"setting '{key}' must be a {kind.__name__}, got {value!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Browse the Art Institute of Chicago collection as ASCII art.",
    )
    parser.add_argument("-q", "--q", dest="query", help="Search terms (default: waves).")
    parser.add_argument("-t", "--tick-rate", type=float, help="Logic ticks per second (default: 4.0).")
    parser.add_argument("-f", "--frame-rate", type=float, help="Frames per second (default: 60.0).")
    parser.add_argument("-a", "--alphabet", choices=ALPHABETS, help="Glyph set used for the ASCII art.")
    parser.add_argument("-i", "--invert", action="store_true", default=None,
                        help="Use dense glyphs for dark pixels, for light terminal backgrounds.")
    parser.add_argument("--no-cache", dest="use_cache", action="store_false", default=None,
                        help="Always download images instead of reading the local cache.")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def load_config(argv: Optional[List[str]] = None) -> Config:
    """Resolves defaults, environment, settings file and command-line flags, in that order."""
    args = build_parser().parse_args(argv)
    config = from_settings_file(from_env())
    overrides = {k: v for k, v in vars(args).items() if v is not None}
    return replace(config, **overrides).validate()
