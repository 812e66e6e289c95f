#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Application configuration
Loading, saving and validating settings from a JSON file
"""

import json
import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, asdict
from datetime import datetime
from decimal import Decimal, InvalidOperation

from utils.error_handler import ErrorHandler, ConfigurationError, get_error_handler


@dataclass
class CalculationConfig:
    """Calculation settings"""
    day_count_basis: int = 365
    currency_precision: str = "0.01"
    rounding_method: str = "half_up"  # half_up, half_even, down, up
    default_jurisdiction: str = "BC"
    default_regime: str = "prejudgment"

    @property
    def day_count_basis_decimal(self) -> Decimal:
        return Decimal(self.day_count_basis)

    @property
    def currency_precision_decimal(self) -> Decimal:
        return Decimal(self.currency_precision)


@dataclass
class RatesConfig:
    """Rate table settings"""
    rate_table_path: Optional[str] = None  # None uses the bundled sample table
    valid_until: Optional[str] = None      # overrides the document's validUntil


@dataclass
class LoggingConfig:
    """Logging settings"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10485760  # 10MB
    backup_count: int = 5
    console_enabled: bool = True


@dataclass
class ErrorHandlerConfig:
    log_file: Optional[str] = None
    report_dir: str = "reports/error_details"
    max_history_items: int = 200


@dataclass
class AppConfig:
    """Whole-application settings"""
    version: str = "1.0.0"
    app_name: str = "Court Order Interest Calculator"
    last_updated: str = field(default_factory=lambda: datetime.now().isoformat())

    calculation: CalculationConfig = field(default_factory=CalculationConfig)
    rates: RatesConfig = field(default_factory=RatesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    error_handling: ErrorHandlerConfig = field(default_factory=ErrorHandlerConfig)

    custom_settings: Dict[str, Any] = field(default_factory=dict)


LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
ROUNDING_METHOD_NAMES = ['half_up', 'half_even', 'down', 'up']


class ConfigManager:
    """Loads and saves AppConfig as JSON"""

    def __init__(self, config_file_path: Optional[Union[str, Path]] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.logger = logging.getLogger(__name__)
        self._error_handler = error_handler or get_error_handler()
        self._config_file_path = Path(config_file_path) if config_file_path else Path("config/app_config.json")
        self._config: Optional[AppConfig] = None
        self._load_config()

    def _load_config(self):
        if not self._config_file_path.exists():
            self._config = AppConfig()
            self.save_config()
            self.logger.info("Initialized with default settings")
            return

        try:
            with open(self._config_file_path, 'r', encoding='utf-8') as f:
                config_dict = json.load(f)
            self._config = self._dict_to_config(config_dict)
            self.logger.info(f"Loaded settings from {self._config_file_path}")
        except json.JSONDecodeError as e:
            self._error_handler.handle_exception(
                ConfigurationError(f"Could not parse settings file {self._config_file_path}: {e}",
                                   user_message="The settings file is malformed. Starting with default settings.")
            )
            self._config = AppConfig()
        except (OSError, TypeError) as e:
            self._error_handler.handle_exception(
                ConfigurationError(f"Could not read settings file {self._config_file_path}: {e}",
                                   user_message="The settings could not be loaded. Starting with default settings.")
            )
            self._config = AppConfig()

    def save_config(self, file_path: Optional[Union[str, Path]] = None) -> bool:
        """Writes the current settings; returns False on failure"""
        if self._config is None:
            self._config = AppConfig()
        self._config.last_updated = datetime.now().isoformat()
        save_path = Path(file_path) if file_path else self._config_file_path

        try:
            save_path.parent.mkdir(parents=True, exist_ok=True)
            with open(save_path, 'w', encoding='utf-8') as f:
                json.dump(asdict(self._config), f, ensure_ascii=False, indent=2)
        except OSError as e:
            self._error_handler.handle_exception(
                ConfigurationError(f"Could not write settings file {save_path}: {e}",
                                   user_message=f"Saving '{save_path.name}' failed.")
            )
            return False

        self.logger.info(f"Saved settings to {save_path}")
        return True

    def get_config(self) -> AppConfig:
        if self._config is None:
            self._load_config()
        return self._config

    def update_config(self, **kwargs) -> bool:
        """Updates settings; dict values update the matching section"""
        config = self.get_config()
        for key, value in kwargs.items():
            if hasattr(config, key):
                if isinstance(value, dict) and not isinstance(getattr(config, key), dict):
                    section = getattr(config, key)
                    for sub_key, sub_value in value.items():
                        if hasattr(section, sub_key):
                            setattr(section, sub_key, sub_value)
                        else:
                            self.logger.warning(f"Unknown setting ignored: {key}.{sub_key}")
                else:
                    setattr(config, key, value)
            else:
                config.custom_settings[key] = value
        return self.save_config()

    def get_setting(self, key: str, section: Optional[str] = None, default=None) -> Any:
        config = self.get_config()
        if section:
            section_obj = getattr(config, section, None)
            return getattr(section_obj, key, default) if section_obj is not None else default
        if hasattr(config, key):
            return getattr(config, key)
        return config.custom_settings.get(key, default)

    def reset_to_defaults(self, section: Optional[str] = None) -> bool:
        if section:
            if not hasattr(self.get_config(), section):
                self.logger.warning(f"Unknown settings section: {section}")
                return False
            setattr(self._config, section, getattr(AppConfig(), section))
        else:
            self._config = AppConfig()
        return self.save_config()

    def validate_config(self) -> Dict[str, Any]:
        """Checks settings and returns {'valid', 'errors', 'warnings'}"""
        validation_result = {
            'valid': True,
            'errors': [],
            'warnings': []
        }
        config = self.get_config()

        if config.calculation.day_count_basis not in (360, 365, 366):
            validation_result['warnings'].append(
                f"Unusual day count basis: {config.calculation.day_count_basis}"
            )
        if config.calculation.day_count_basis <= 0:
            validation_result['errors'].append("The day count basis must be positive")
            validation_result['valid'] = False

        try:
            precision = Decimal(config.calculation.currency_precision)
            if precision <= 0:
                raise InvalidOperation
        except (InvalidOperation, TypeError):
            validation_result['errors'].append(
                f"Currency precision must be a positive decimal such as '0.01', got {config.calculation.currency_precision!r}"
            )
            validation_result['valid'] = False

        if config.calculation.rounding_method not in ROUNDING_METHOD_NAMES:
            validation_result['errors'].append(f"Rounding method must be one of {ROUNDING_METHOD_NAMES}")
            validation_result['valid'] = False

        if config.calculation.default_regime not in ('prejudgment', 'postjudgment'):
            validation_result['errors'].append("Default regime must be 'prejudgment' or 'postjudgment'")
            validation_result['valid'] = False

        if config.rates.rate_table_path and not Path(config.rates.rate_table_path).exists():
            validation_result['warnings'].append(
                f"Rate table file not found: {config.rates.rate_table_path}"
            )

        if config.logging.level not in LOG_LEVELS:
            validation_result['errors'].append(f"Log level must be one of {LOG_LEVELS}")
            validation_result['valid'] = False

        return validation_result

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> AppConfig:
        return AppConfig(
            version=config_dict.get('version', '1.0.0'),
            app_name=config_dict.get('app_name', 'Court Order Interest Calculator'),
            last_updated=config_dict.get('last_updated', datetime.now().isoformat()),
            calculation=CalculationConfig(**config_dict.get('calculation', {})),
            rates=RatesConfig(**config_dict.get('rates', {})),
            logging=LoggingConfig(**config_dict.get('logging', {})),
            error_handling=ErrorHandlerConfig(**config_dict.get('error_handling', {})),
            custom_settings=config_dict.get('custom_settings', {})
        )


def setup_logging(logging_config: LoggingConfig) -> None:
    """Installs root logging handlers from LoggingConfig"""
    handlers = []
    formatter = logging.Formatter(logging_config.format)
    if logging_config.console_enabled:
        handlers.append(logging.StreamHandler())
    if logging_config.file_path:
        Path(logging_config.file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            logging_config.file_path,
            maxBytes=logging_config.max_file_size,
            backupCount=logging_config.backup_count,
            encoding='utf-8',
        ))
    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(getattr(logging, logging_config.level.upper(), logging.INFO))
    for handler in handlers:
        root.addHandler(handler)



def build_error_handler(error_config: ErrorHandlerConfig) -> ErrorHandler:
    """ErrorHandler configured from the error_handling section"""
    return ErrorHandler(
        log_file=error_config.log_file,
        max_history_items=error_config.max_history_items,
        report_dir=error_config.report_dir,
    )

_config_manager = None


def get_config_manager() -> ConfigManager:
    """Shared ConfigManager instance"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> AppConfig:
    return get_config_manager().get_config()
