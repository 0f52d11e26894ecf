"""Configuration loading for unifeed."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"true", "yes", "1"}
_FALSE_VALUES = {"false", "no", "0"}


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class MappingConfig:
    strict: bool = False
    clamp_images: bool = False


@dataclass
class OutputConfig:
    indent: int = 2


@dataclass
class AppConfig:
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def _parse_bool(value: Optional[str], default: bool, name: str) -> bool:
    if value is None or not value.strip():
        return default
    normalised = value.strip().lower()
    if normalised in _TRUE_VALUES:
        return True
    if normalised in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for <{name}>: {value!r}")


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    tree = ET.parse(config_path)
    root = tree.getroot()
    config = AppConfig()

    # Logging
    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = (log_node.findtext("level") or "INFO").strip()
        log_file = log_node.findtext("file")
        if log_file and log_file.strip():
            config.logging.file = _resolve_path(config_path, log_file.strip())

    # Mapping
    mapping_node = root.find("mapping")
    if mapping_node is not None:
        config.mapping.strict = _parse_bool(
            mapping_node.findtext("strict"), False, "strict"
        )
        config.mapping.clamp_images = _parse_bool(
            mapping_node.findtext("clamp-images"), False, "clamp-images"
        )

    # Output
    output_node = root.find("output")
    if output_node is not None:
        indent_text = output_node.findtext("indent")
        if indent_text and indent_text.strip():
            try:
                indent = int(indent_text.strip())
            except ValueError as exc:
                raise ValueError(f"Invalid <indent>: {indent_text!r}") from exc
            if indent < 0:
                raise ValueError(f"<indent> must not be negative: {indent}")
            config.output.indent = indent

    logger.debug("Parsed configuration: %s", config)
    return config
