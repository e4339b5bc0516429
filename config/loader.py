"""Configuration file loader and validator.

Reads ``text2mp3.ini``, coerces each value to the type declared in ``models.config_models`` and
validates the result. Raises exceptions for any issues encountered during loading.
"""

from __future__ import annotations

import ast
import configparser
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

from models.config_models import Config
from models.re_models import LOCALE_PATTERN, VOICE_SHORT_NAME_PATTERN
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from dataclasses import Field as DataclassField

__all__: list[str] = [
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Loads and validates configuration settings.

    Args:
        config_filename (str): INI file name to load.
        script_name (str): Executing script name, used in error messaging.
        debug (bool): Force debug mode regardless of the file.
        data_dir (str | None): Override for ``GENERAL.DATA_DIR``.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(
        self,
        *,
        config_filename: str,
        script_name: str,
        **args,
    ) -> None:
        config_path = Path(config_filename)
        msg: str
        if not config_path.exists():
            msg = (
                f"Configuration file '{config_filename}' not found. "
                f"Please create '{config_filename}' in the same directory as '{script_name}'."
            )
            raise ConfigFileNotFoundError(msg)

        parser: ConfigParser = ConfigParser(interpolation=None)
        # keep the upper-case key names used by the dataclasses
        parser.optionxform = str  # type: ignore[assignment, method-assign]

        try:
            parser.read(config_filename, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config = Config()
        self.config.GENERAL.SCRIPT_NAME = script_name
        self._convert_settings(parser)
        self.apply_overrides(self.config, **args)
        self.validate(self.config)

    @staticmethod
    def apply_overrides(config: Config, **args: Any) -> None:
        """Apply command-line overrides to an already built configuration."""
        if args.get("debug", False):
            config.GENERAL.DEBUG = True
        if args.get("data_dir"):
            config.GENERAL.DATA_DIR = str(args["data_dir"])

    def _convert_settings(self, parser: ConfigParser) -> None:
        """Copy every known key from the parser into ``self.config``.

        Raises:
            ConfigFormatError: If a value cannot be parsed or coerced to the expected type.
        """
        formatter = _ConfigFormatter(self.config, parser)
        for section in fields(self.config):
            if not parser.has_section(section.name):
                logger.debug("Skipping undefined section: '%s'", section.name)
                continue
            for key in fields(getattr(self.config, section.name)):
                if not parser.has_option(section.name, key.name):
                    logger.debug("Skipping undefined setting: '%s.%s'", section.name, key.name)
                    continue
                setattr(getattr(self.config, section.name), key.name, formatter.apply_format(section, key))

        for section_name in parser.sections():
            if section_name not in {section.name for section in fields(self.config)}:
                logger.warning("Unknown section '%s' in configuration file is ignored", section_name)

    @staticmethod
    def validate(config: Config) -> None:
        """Validate ranges and identifiers.

        Raises:
            ConfigValueError: If a numeric setting is out of range.
        """
        if config.PROVIDER.TIMEOUT <= 0:
            msg = f"PROVIDER.TIMEOUT must be positive, got {config.PROVIDER.TIMEOUT}"
            raise ConfigValueError(msg)
        if config.PROVIDER.PROBE_TIMEOUT <= 0:
            msg = f"PROVIDER.PROBE_TIMEOUT must be positive, got {config.PROVIDER.PROBE_TIMEOUT}"
            raise ConfigValueError(msg)
        if config.PROVIDER.MAX_WORKERS < 1:
            msg = f"PROVIDER.MAX_WORKERS must be at least 1, got {config.PROVIDER.MAX_WORKERS}"
            raise ConfigValueError(msg)
        if not config.GENERAL.DATA_DIR.strip():
            msg = "GENERAL.DATA_DIR must not be empty"
            raise ConfigValueError(msg)

        if not VOICE_SHORT_NAME_PATTERN.match(config.SYNTHESIS.VOICE):
            logger.warning("'SYNTHESIS.VOICE' does not look like a provider voice name: '%s'", config.SYNTHESIS.VOICE)
        if not LOCALE_PATTERN.match(config.SYNTHESIS.LOCALE):
            logger.warning("'SYNTHESIS.LOCALE' does not look like a locale code: '%s'", config.SYNTHESIS.LOCALE)


class _ConfigFormatter:
    """Converts INI string values to the Python type declared on the Config field."""

    def __init__(self, config: Config, parser: ConfigParser) -> None:
        self.config: Config = config
        self.parser: ConfigParser = parser

    def apply_format(self, section: DataclassField[Any], key: DataclassField[Any]) -> Any:
        """Coerce ``[section] key`` to the type of its current (default) value.

        Raises:
            ConfigValueError: If a value cannot be coerced to the expected type.
            ConfigFormatError: If literal evaluation fails due to invalid syntax.
            ConfigTypeError: If the literal evaluates to an unexpected type.
        """
        formatters: dict[type, Callable[[str, str], Any]] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
            str: self.parse_as_string,
        }
        current: Any = getattr(getattr(self.config, section.name), key.name)
        formatter: Callable[[str, str], Any] | None = formatters.get(type(current))
        if formatter:
            try:
                return formatter(section.name, key.name)
            except ValueError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigValueError(msg) from err

        value_str: str = self.parser[section.name][key.name]
        try:
            value: Any = ast.literal_eval(value_str)
        except ValueError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigValueError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigFormatError(msg) from err
        if current is not None and not isinstance(value, type(current)):
            msg = f"Unsupported type used for '{section.name}.{key.name}': {type(value)}"
            raise ConfigTypeError(msg)
        return value

    def _unquoted(self, section: str, key: str) -> str:
        value: str = self.parser.get(section, key).strip()
        for char in ("'", '"'):
            if len(value) >= 2 and value.startswith(char) and value.endswith(char):
                return value[1:-1]
        return value

    def parse_as_string(self, section: str, key: str) -> str:
        """Strings may be written with or without quotes."""
        return self._unquoted(section, key)

    def parse_as_float(self, section: str, key: str) -> float:
        return float(self._unquoted(section, key).removesuffix("%"))

    def parse_as_integer(self, section: str, key: str) -> int:
        """Integers accept a trailing unit (``+10%``, ``-5Hz``)."""
        value: str = self._unquoted(section, key).removesuffix("%").removesuffix("Hz")
        return int(float(value))

    def parse_as_boolean(self, section: str, key: str) -> bool:
        return self.parser.getboolean(section, key)
