#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Unified error handling for the interest calculator

Features:
- Exception hierarchy for validation, rate-table and configuration failures
- User-facing messages and recovery suggestions
- Severity-mapped logging
- Error statistics and JSON error reports
"""

import logging
import traceback
from datetime import date, datetime
from decimal import InvalidOperation
from typing import Dict, Any, Optional, Callable, List
from enum import Enum
from dataclasses import dataclass, field
import json
from pathlib import Path


class ErrorSeverity(Enum):
    """Severity of an error"""
    LOW = "low"           # validation problems the user can fix
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error category"""
    INPUT_VALIDATION = "input_validation"
    RATE_TABLE = "rate_table"
    CALCULATION = "calculation"
    FILE_IO = "file_io"
    CONFIGURATION = "configuration"
    SYSTEM = "system"
    UNKNOWN = "unknown"


@dataclass
class ErrorInfo:
    """Error information"""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    timestamp: datetime = field(default_factory=datetime.now)
    exception_type: Optional[str] = None
    stack_trace: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    recovery_suggestion: Optional[str] = None
    error_code: Optional[str] = None


class InterestCalculatorError(Exception):
    """Base exception of the interest calculator"""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN,
                 severity: ErrorSeverity = ErrorSeverity.MEDIUM,
                 user_message: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None,
                 recovery_suggestion: Optional[str] = None,
                 error_code: Optional[str] = None):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.user_message = user_message or message
        self.context = context or {}
        self.recovery_suggestion = recovery_suggestion
        self.error_code = error_code


class ValidationError(InterestCalculatorError):
    """Input validation error"""
    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        kwargs.setdefault('error_code', 'INVALID_INPUT')
        super().__init__(
            message,
            category=ErrorCategory.INPUT_VALIDATION,
            severity=ErrorSeverity.LOW,
            **kwargs
        )
        if field_name:
            self.context["field_name"] = field_name


class InvalidDateError(ValidationError):
    """A value could not be normalized to a calendar date"""
    def __init__(self, message: str, value: Any = None, **kwargs):
        kwargs.setdefault('error_code', 'INVALID_DATE')
        kwargs.setdefault('user_message', 'Please enter a valid date (YYYY-MM-DD).')
        super().__init__(message, **kwargs)
        if value is not None:
            self.context["value"] = repr(value)


class InvalidRangeError(ValidationError):
    """The start of a date range falls after its end"""
    def __init__(self, message: str, start: Optional[date] = None,
                 end: Optional[date] = None, **kwargs):
        kwargs.setdefault('error_code', 'INVALID_RANGE')
        kwargs.setdefault('user_message', 'The start date must be on or before the end date.')
        super().__init__(message, **kwargs)
        self.start = start
        self.end = end
        if start is not None and end is not None:
            self.context.update({"start": start.isoformat(), "end": end.isoformat()})


class RateTableError(InterestCalculatorError):
    """Rate table is missing, malformed or does not cover a date"""
    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('error_code', 'RATE_TABLE')
        super().__init__(
            message,
            category=ErrorCategory.RATE_TABLE,
            severity=ErrorSeverity.MEDIUM,
            **kwargs
        )


class RateNotFoundError(RateTableError):
    """No rate period covers the requested date"""
    def __init__(self, message: str, on_date: Optional[date] = None, **kwargs):
        kwargs.setdefault('error_code', 'RATE_NOT_FOUND')
        kwargs.setdefault('user_message', 'No published interest rate applies to the selected date.')
        super().__init__(message, **kwargs)
        self.on_date = on_date
        if on_date is not None:
            self.context["date"] = on_date.isoformat()


class RateTableGapError(RateTableError):
    """The rate periods do not contiguously cover a requested range"""
    def __init__(self, gap_start: date, gap_end: date, message: Optional[str] = None, **kwargs):
        message = message or (
            f"No rate period covers {gap_start.isoformat()} to {gap_end.isoformat()}"
        )
        kwargs.setdefault('error_code', 'RATE_TABLE_GAP')
        kwargs.setdefault(
            'user_message',
            f"Interest rates are not available from {gap_start.isoformat()} to {gap_end.isoformat()}."
        )
        super().__init__(message, **kwargs)
        self.gap_start = gap_start
        self.gap_end = gap_end
        self.context.update({"gap_start": gap_start.isoformat(), "gap_end": gap_end.isoformat()})


class ConfigurationError(InterestCalculatorError):
    """Configuration error"""
    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            **kwargs
        )


# Builtin exceptions that reach the handler, most specific first
_BUILTIN_ERRORS = (
    (json.JSONDecodeError, ErrorCategory.FILE_IO, ErrorSeverity.HIGH,
     'A data file could not be read because it is malformed.'),
    (InvalidOperation, ErrorCategory.CALCULATION, ErrorSeverity.MEDIUM,
     'An amount could not be used in the calculation.'),
    ((ZeroDivisionError, OverflowError), ErrorCategory.CALCULATION, ErrorSeverity.HIGH,
     'The calculation could not be completed with the entered values.'),
    ((ValueError, TypeError), ErrorCategory.INPUT_VALIDATION, ErrorSeverity.LOW,
     'One of the entered values is invalid. Please check the format.'),
    ((FileNotFoundError, PermissionError), ErrorCategory.FILE_IO, ErrorSeverity.HIGH,
     'The requested file could not be accessed.'),
    (MemoryError, ErrorCategory.SYSTEM, ErrorSeverity.CRITICAL,
     'The system ran out of memory.'),
    (OSError, ErrorCategory.SYSTEM, ErrorSeverity.MEDIUM,
     'A system error occurred while accessing a file.'),
)

_RECOVERY_SUGGESTIONS = {
    ErrorCategory.INPUT_VALIDATION: 'Check the entered dates and amounts and try again.',
    ErrorCategory.RATE_TABLE: 'Update the interest rate table or choose dates it covers.',
    ErrorCategory.CALCULATION: 'Check the entered amounts for unusual values.',
    ErrorCategory.FILE_IO: 'Check that the file exists and is readable.',
    ErrorCategory.CONFIGURATION: 'Check or reset the configuration file.',
    ErrorCategory.SYSTEM: 'Check system resources and restart the application.',
}

_LOG_LEVELS = {
    ErrorSeverity.CRITICAL: logging.CRITICAL,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.LOW: logging.INFO,
}


def _error_record(error: ErrorInfo, detailed: bool = False) -> Dict[str, Any]:
    record = {
        "timestamp": error.timestamp.isoformat(),
        "category": error.category.value,
        "severity": error.severity.value,
        "message": error.message,
    }
    if detailed:
        record.update({
            "user_message": error.user_message,
            "exception_type": error.exception_type,
            "error_code": error.error_code,
            "context": error.context,
            "recovery_suggestion": error.recovery_suggestion,
        })
    return record


class ErrorHandler:
    """
    Turns exceptions into ErrorInfo records for display.

    Each handled error is logged at a level matching its severity, counted by
    category and severity, and kept in a bounded history that can be exported
    as a JSON report.
    """

    def __init__(self, log_file: Optional[str] = None, max_history_items: int = 200,
                 report_dir: str = "reports/error_details"):
        self.logger = logging.getLogger(__name__)
        self.report_dir = Path(report_dir)
        self.error_stats: Dict[str, int] = {}
        self.error_history: List[ErrorInfo] = []
        self.max_history_items = max_history_items
        self.recovery_handlers: Dict[ErrorCategory, Callable[[ErrorInfo], None]] = {
            ErrorCategory.INPUT_VALIDATION: self._note_recovery("asking the user to correct the input"),
            ErrorCategory.RATE_TABLE: self._note_recovery("the rate data may need to be refreshed"),
            ErrorCategory.CONFIGURATION: self._note_recovery("continuing with default settings"),
        }
        if log_file:
            self.setup_error_logging(log_file)

    def setup_error_logging(self, log_file: str):
        """Also write ERROR and above to ``log_file``"""
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.ERROR)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        self.logger.addHandler(file_handler)

    def register_recovery_handler(self, category: ErrorCategory, handler: Callable[[ErrorInfo], None]):
        self.recovery_handlers[category] = handler

    def _note_recovery(self, action: str) -> Callable[[ErrorInfo], None]:
        def handler(error_info: ErrorInfo) -> None:
            self.logger.info(f"{error_info.category.value} error - {action}")
        return handler

    def handle_exception(self, exception: Exception, context: Optional[Dict[str, Any]] = None) -> ErrorInfo:
        """Convert an exception into ErrorInfo, then log and record it"""
        error_info = self._describe(exception, context or {})

        self._log_error(error_info)
        key = f"{error_info.category.value}_{error_info.severity.value}"
        self.error_stats[key] = self.error_stats.get(key, 0) + 1
        self.error_history.append(error_info)
        if len(self.error_history) > self.max_history_items:
            del self.error_history[:-self.max_history_items]

        recovery_handler = self.recovery_handlers.get(error_info.category)
        if recovery_handler:
            try:
                recovery_handler(error_info)
            except Exception as e:
                self.logger.error(f"Error during recovery handling: {e}")

        return error_info

    def _describe(self, exception: Exception, context: Dict[str, Any]) -> ErrorInfo:
        stack_trace = None
        if exception.__traceback__ is not None:
            stack_trace = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))

        if isinstance(exception, InterestCalculatorError):
            return ErrorInfo(
                category=exception.category,
                severity=exception.severity,
                message=str(exception),
                user_message=exception.user_message,
                exception_type=type(exception).__name__,
                stack_trace=stack_trace,
                context={**exception.context, **context},
                recovery_suggestion=exception.recovery_suggestion or self._recovery_suggestion(exception.category),
                error_code=exception.error_code,
            )

        category, severity, user_message = self._classify(exception)
        return ErrorInfo(
            category=category,
            severity=severity,
            message=str(exception),
            user_message=user_message,
            exception_type=type(exception).__name__,
            stack_trace=stack_trace,
            context=dict(context),
            recovery_suggestion=self._recovery_suggestion(category),
        )

    @staticmethod
    def _classify(exception: Exception):
        for types, category, severity, user_message in _BUILTIN_ERRORS:
            if isinstance(exception, types):
                return category, severity, user_message
        return ErrorCategory.UNKNOWN, ErrorSeverity.MEDIUM, f'An unexpected error occurred: {exception}'

    @staticmethod
    def _recovery_suggestion(category: ErrorCategory) -> str:
        return _RECOVERY_SUGGESTIONS.get(category, 'Restart the application.')

    def _log_error(self, error_info: ErrorInfo):
        log_message = f"[{error_info.category.value}] {error_info.message} (severity: {error_info.severity.value})"
        if error_info.context:
            log_message += f" | Context: {json.dumps(error_info.context, ensure_ascii=False, default=str)}"
        self.logger.log(_LOG_LEVELS[error_info.severity], log_message)

        if error_info.stack_trace:
            self.logger.debug(f"Stack trace: {error_info.stack_trace}")

    def get_error_statistics(self) -> Dict[str, Any]:
        return {
            "total_errors": len(self.error_history),
            "by_category": dict(self.error_stats),
            "recent_errors": [_error_record(error) for error in self.error_history[-10:]],
        }

    def export_error_report(self, filepath: Optional[str] = None) -> Path:
        """Write statistics and the full error history as JSON; defaults to a timestamped file in report_dir"""
        if filepath is None:
            filepath = self.report_dir / f"error_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
        report = {
            "generated_at": datetime.now().isoformat(),
            "statistics": self.get_error_statistics(),
            "all_errors": [_error_record(error, detailed=True) for error in self.error_history],
        }
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        Path(filepath).write_text(json.dumps(report, ensure_ascii=False, indent=2, default=str), encoding='utf-8')
        return Path(filepath)


_shared_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Handler shared by components that were not given their own"""
    global _shared_handler
    if _shared_handler is None:
        _shared_handler = ErrorHandler()
    return _shared_handler


def set_error_handler(handler: Optional[ErrorHandler]) -> None:
    """Replace the shared handler; None resets it"""
    global _shared_handler
    _shared_handler = handler
