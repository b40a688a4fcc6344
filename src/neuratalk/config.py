"""
Environment configuration and the user's saved settings.
"""
import json
import logging
import math
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from neuratalk.core.animator import RevealRate
from neuratalk.core.generation import DEFAULT_BASE_URL, GenerationOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    home: Path
    conversations_dir: Path
    history_dir: Path
    settings_path: Path
    log_file: Path
    log_level: str = "INFO"
    ollama_host: str = DEFAULT_BASE_URL
    ollama_bin: Optional[str] = None

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "AppConfig":
        if load_env_file:
            load_dotenv()

        home = Path(os.getenv("NEURATALK_HOME", "~/.neuratalk")).expanduser()

        def path_var(name: str, default: Path) -> Path:
            value = os.getenv(name)
            return Path(value).expanduser() if value else default

        return cls(
            home=home,
            conversations_dir=path_var("NEURATALK_CONVERSATIONS_DIR", home / "conversations"),
            history_dir=path_var("NEURATALK_HISTORY_DIR", home / "history"),
            settings_path=path_var("NEURATALK_SETTINGS", home / "config" / "settings.json"),
            log_file=path_var("NEURATALK_LOG_FILE", home / "neuratalk.log"),
            log_level=os.getenv("NEURATALK_LOG_LEVEL", "INFO").upper(),
            ollama_host=os.getenv("OLLAMA_HOST", DEFAULT_BASE_URL),
            ollama_bin=os.getenv("OLLAMA_BIN") or None,
        )


@dataclass
class Settings:
    theme: str = "Light"
    font_size: str = "Medium"
    auto_scroll: bool = True
    animation_speed: float = 20
    model: str = ""
    temperature: float = 0.7
    max_tokens: float = 2048
    top_p: float = 0.9
    top_k: float = 40
    context_length: float = 4096

    def generation_options(self) -> GenerationOptions:
        return GenerationOptions(
            temperature=self.temperature,
            top_p=self.top_p,
            top_k=self.top_k,
            max_tokens=self.max_tokens,
            context_length=self.context_length,
        )

    def reveal_rate(self) -> RevealRate:
        return RevealRate.from_speed(self.animation_speed)

    def with_animation_speed(self, speed: float) -> "Settings":
        return replace(self, animation_speed=min(100, max(10, speed)))


def load_settings(path: Path) -> Settings:
    """Saved settings, or the defaults when the file is missing or unreadable."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Settings()
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return Settings()

    if not isinstance(data, dict):
        return Settings()

    values = {}
    for field in fields(Settings):
        if field.name not in data:
            continue
        value = _coerce(data[field.name], field.default)
        if value is None:
            logger.warning("Ignoring setting %s=%r from %s", field.name, data[field.name], path)
            continue
        values[field.name] = value
    return Settings(**values)


def _coerce(value, default):
    """`value` as the type of `default`, or None when it does not convert."""
    if isinstance(default, bool):
        return value if isinstance(value, bool) else None
    if isinstance(default, (int, float)):
        if isinstance(value, bool):
            return None
        if not isinstance(value, (int, float)):
            try:
                value = float(value)
            except (TypeError, ValueError):
                return None
        return value if math.isfinite(value) else None
    return value if isinstance(value, str) else None


def save_settings(settings: Settings, path: Path) -> None:
    """Write settings to a temporary file and rename it over the target."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
    try:
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
