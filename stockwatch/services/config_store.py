"""Load and save the monitor's JSON configuration file."""

from pathlib import Path
from typing import Union

import structlog
from pydantic import ValidationError

from stockwatch.core.exceptions import ConfigError
from stockwatch.schemas.monitor_config import MonitorConfig


logger = structlog.get_logger(__name__)

PathLike = Union[str, Path]


def load_config(path: PathLike) -> MonitorConfig:
    """Read the config file.

    Args:
        path: Config file location

    Returns:
        Parsed MonitorConfig, or defaults if the file doesn't exist

    Raises:
        ConfigError: If the file can't be read or isn't a valid config
    """
    path = Path(path)
    if not path.exists():
        logger.info("config_missing_using_defaults", path=str(path))
        return MonitorConfig()

    try:
        raw = path.read_text(encoding="utf-8")
        config = MonitorConfig.model_validate_json(raw)
    except (OSError, ValidationError) as e:
        raise ConfigError(str(path), str(e)) from e

    logger.info("config_loaded", path=str(path), targets=len(config.targets))
    return config


def save_config(config: MonitorConfig, path: PathLike) -> None:
    """Write the config back in a pretty, hand-editable format.

    Raises:
        ConfigError: If the file can't be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(config.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")
    except OSError as e:
        raise ConfigError(str(path), str(e)) from e

    logger.debug("config_saved", path=str(path))
