"""Configuration loading and the persisted sheet source."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from sheet_finance.utils.logging_config import get_logger

logger = get_logger(__name__)


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


DEFAULT_CATEGORIES = [
    "Food & Dining",
    "Transportation",
    "Utilities",
    "Entertainment",
    "Shopping",
    "Health & Fitness",
    "Housing",
    "Income",
    "Other",
]

# Chart palette, assigned to breakdown entries by index (cyclic)
DEFAULT_PALETTE = [
    "#3b82f6",  # blue-500
    "#ef4444",  # red-500
    "#10b981",  # green-500
    "#f59e0b",  # amber-500
    "#8b5cf6",  # violet-500
    "#ec4899",  # pink-500
    "#06b6d4",  # cyan-500
    "#6366f1",  # indigo-500
    "#64748b",  # slate-500
]

DEFAULT_STATE_FILE = Path(".sheet_finance") / "state.yaml"


@dataclass
class AIConfig:
    """Configuration for the hosted language model.

    Attributes:
        enabled: Whether enrichment, insights and receipt scanning may call the API.
        api_key_env: Environment variable holding the API key.
        model: Model used for all requests.
        budget_limit: Maximum spend per run in USD (None for unlimited).
        batch_size: Records per enrichment request.
    """

    enabled: bool = True
    api_key_env: str = "ANTHROPIC_API_KEY"
    model: str = "claude-sonnet-4-5-20250929"
    budget_limit: float | None = 5.00
    batch_size: int = 20

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "AIConfig":
        """Create from dictionary."""
        budget = data.get("budget_limit", 5.00)
        batch_size = int(data.get("batch_size", 20))  # type: ignore[arg-type]
        if batch_size < 1:
            raise ConfigError(f"ai.batch_size must be at least 1, got {batch_size}")
        return cls(
            enabled=bool(data.get("enabled", True)),
            api_key_env=str(data.get("api_key_env", "ANTHROPIC_API_KEY")),
            model=str(data.get("model", "claude-sonnet-4-5-20250929")),
            budget_limit=float(budget) if budget is not None else None,  # type: ignore[arg-type]
            batch_size=batch_size,
        )


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file.
    """

    level: str = "INFO"
    file: str = "sheet_finance.log"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        return cls(
            level=str(data.get("level", "INFO")),
            file=str(data.get("file", "sheet_finance.log")),
        )


@dataclass
class Config:
    """Main configuration container.

    Attributes:
        categories: Category vocabulary offered to enrichment and manual entry.
        palette: Colors for the category breakdown.
        ai: Hosted language model configuration.
        logging: Logging configuration.
        state_path: File holding the persisted source URL.
    """

    categories: list[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    palette: list[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    ai: AIConfig = field(default_factory=AIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    state_path: Path = field(default_factory=lambda: DEFAULT_STATE_FILE)


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the file is not a YAML mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(content).__name__}")
    return content


def _string_list(data: dict[str, object], key: str, path: Path) -> Optional[list[str]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not value:
        raise ConfigError(f"'{key}' in {path} must be a non-empty list")
    return [str(item) for item in value]


def load_config(settings_path: Optional[Path] = None, config_dir: Optional[Path] = None) -> Config:
    """Load configuration from settings.yaml, using defaults when absent.

    Args:
        settings_path: Path to settings.yaml (or None to use the default).
        config_dir: Base config directory (default: ./config).

    Returns:
        Complete Config object.

    Raises:
        ConfigError: If the settings file is malformed.
    """
    if config_dir is None:
        config_dir = Path("config")
    if settings_path is None:
        settings_path = config_dir / "settings.yaml"

    config = Config()

    if not settings_path.exists():
        logger.debug(f"Settings file not found: {settings_path}, using defaults")
        return config

    data = load_yaml_file(settings_path)

    categories = _string_list(data, "categories", settings_path)
    if categories is not None:
        config.categories = categories

    palette = _string_list(data, "palette", settings_path)
    if palette is not None:
        config.palette = palette

    if isinstance(data.get("ai"), dict):
        config.ai = AIConfig.from_dict(data["ai"])  # type: ignore[arg-type]
    if isinstance(data.get("logging"), dict):
        config.logging = LoggingConfig.from_dict(data["logging"])  # type: ignore[arg-type]
    if data.get("state_file"):
        config.state_path = Path(str(data["state_file"]))

    logger.info(f"Loaded settings from {settings_path}")
    return config


def load_source_url(path: Path) -> Optional[str]:
    """Read the last successfully synced source URL.

    Args:
        path: Path to the state file.

    Returns:
        The saved URL, or None when nothing has been saved yet.
    """
    if not path.exists():
        return None

    try:
        data = load_yaml_file(path)
    except ConfigError as e:
        logger.warning(f"Ignoring unreadable state file {path}: {e}")
        return None

    url = data.get("source_url")
    return str(url) if url else None


def save_source_url(path: Path, url: str) -> None:
    """Persist the source URL after a successful sync.

    Args:
        path: Path to the state file.
        url: Spreadsheet CSV export or script endpoint URL.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump({"source_url": url}, f, default_flow_style=False, sort_keys=False)

    logger.debug(f"Saved source URL to {path}")
