"""Configuration helpers for the Tidy coach backend."""

from dataclasses import dataclass, field
from pathlib import Path
import os
from typing import List, Optional

DEFAULT_TEXT_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_GEMINI_MODEL = "models/gemini-1.5-flash-002"
DEFAULT_IMAGE_MODEL = "gpt-image-1"
DEFAULT_ALLOWED_ORIGINS = [
    "https://tacogong0621.github.io",
    "http://localhost:5000",
    "http://localhost:3000",
]


def _as_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value not in (None, "") else default
    except ValueError:
        return default


def _as_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default


@dataclass
class CoachConfig:
    """Configuration values for the coach pipelines.

    Credentials are optional at construction time: the text provider raises a
    configuration error when it is actually called without one, and the image
    edit step is skipped entirely when its key is absent.
    """

    text_provider: str = "anthropic"
    text_model: str = DEFAULT_TEXT_MODEL
    anthropic_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    image_model: str = DEFAULT_IMAGE_MODEL
    image_size: str = "1024x1024"
    image_quality: str = "medium"
    max_tokens_cap: int = 200
    analysis_max_tokens: int = 1500
    trigger_timeout_seconds: float = 10.0
    request_timeout_seconds: float = 15.0
    analysis_timeout_seconds: float = 60.0
    short_mode_weight: float = 0.8
    item_db_path: str = "data/items.db"
    profile_dir: str = "data/profiles"
    session_store_backend: str = "json"
    session_store_path: Optional[str] = None
    blob_backend: str = "local"
    blob_dir: str = "data/blobs"
    blob_public_base_url: str = "http://localhost:8080/blobs"
    gcs_bucket: Optional[str] = None
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "CoachConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables so that secrets can be
        injected by the hosting platform at runtime.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("TIDY_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        defaults = cls()
        text_provider = (get_value("text_provider", "anthropic") or "anthropic").lower()
        default_model = DEFAULT_GEMINI_MODEL if text_provider == "gemini" else DEFAULT_TEXT_MODEL
        origins = get_value("allowed_origins")

        return cls(
            text_provider=text_provider,
            text_model=str(get_value("text_model", default_model) or default_model),
            anthropic_api_key=get_value("anthropic_api_key"),
            google_api_key=get_value("google_api_key"),
            openai_api_key=get_value("openai_api_key"),
            image_model=str(get_value("image_model", DEFAULT_IMAGE_MODEL) or DEFAULT_IMAGE_MODEL),
            image_size=str(get_value("image_size", defaults.image_size)),
            image_quality=str(get_value("image_quality", defaults.image_quality)),
            max_tokens_cap=_as_int(get_value("max_tokens_cap"), defaults.max_tokens_cap),
            analysis_max_tokens=_as_int(get_value("analysis_max_tokens"), defaults.analysis_max_tokens),
            trigger_timeout_seconds=_as_float(
                get_value("trigger_timeout_seconds"), defaults.trigger_timeout_seconds
            ),
            request_timeout_seconds=_as_float(
                get_value("request_timeout_seconds"), defaults.request_timeout_seconds
            ),
            analysis_timeout_seconds=_as_float(
                get_value("analysis_timeout_seconds"), defaults.analysis_timeout_seconds
            ),
            short_mode_weight=_as_float(get_value("short_mode_weight"), defaults.short_mode_weight),
            item_db_path=str(get_value("item_db_path", defaults.item_db_path)),
            profile_dir=str(get_value("profile_dir", defaults.profile_dir)),
            session_store_backend=str(get_value("session_store_backend", "json")),
            session_store_path=get_value("session_store_path"),
            blob_backend=str(get_value("blob_backend", "local")).lower(),
            blob_dir=str(get_value("blob_dir", defaults.blob_dir)),
            blob_public_base_url=str(get_value("blob_public_base_url", defaults.blob_public_base_url)),
            gcs_bucket=get_value("gcs_bucket"),
            allowed_origins=(
                [origin.strip() for origin in origins.split(",") if origin.strip()]
                if origins
                else list(DEFAULT_ALLOWED_ORIGINS)
            ),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
