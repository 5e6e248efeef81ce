"""
Error taxonomy and centralized error reporting for the OFDM link simulator.

This module provides the exception hierarchy used across the simulator, the
structured error reports produced when a transmission fails, and a handler that
classifies, logs and records those reports for diagnostics.
"""

import logging
import sys
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import psutil

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""

    VALIDATION_ERROR = "validation_error"
    CONFIGURATION_ERROR = "configuration_error"
    COMPUTATION_ERROR = "computation_error"
    CHANNEL_ERROR = "channel_error"
    SCHEDULING_ERROR = "scheduling_error"
    SYSTEM_ERROR = "system_error"


@dataclass
class ErrorContext:
    """Context information for error handling."""

    operation: str
    component: str
    parameters: Dict[str, Any]
    timestamp: datetime
    system_info: Dict[str, Any]
    memory_info: Dict[str, Any]


@dataclass
class ErrorReport:
    """Structured report of a single handled error."""

    error_id: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    context: ErrorContext
    traceback_info: str
    diagnostic_data: Dict[str, Any] = field(default_factory=dict)


class OFDMError(Exception):
    """Base exception class for simulator errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.SYSTEM_ERROR,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context
        self.timestamp = datetime.now()


class SimulationError(OFDMError):
    """Failure inside one stage of the transmission pipeline."""

    def __init__(
        self, message: str, stage: str = "", severity: ErrorSeverity = ErrorSeverity.HIGH
    ):
        super().__init__(message, ErrorCategory.COMPUTATION_ERROR, severity)
        self.stage = stage


class SchedulingError(OFDMError):
    """Job orchestration errors (executor shut down, unknown request)."""

    def __init__(
        self, message: str, request_id: Optional[int] = None, severity=ErrorSeverity.MEDIUM
    ):
        super().__init__(message, ErrorCategory.SCHEDULING_ERROR, severity)
        self.request_id = request_id


class ErrorHandler:
    """Classifies, logs and records errors raised by the simulator.

    The handler performs no recovery: a failed transmission is reported, never
    retried. Reports are kept in a bounded history for diagnostics.
    """

    MAX_HISTORY = 1000
    TRIMMED_HISTORY = 500

    def __init__(self, log_level: int = logging.WARNING):
        """Initialize error handler.

        Args:
            log_level: Minimum log level for error reporting
        """
        self.log_level = log_level
        self.error_history: List[ErrorReport] = []
        self.statistics = {"total_errors": 0, "critical_failures": 0}

    def handle_error(
        self, error: Exception, context: Optional[ErrorContext] = None
    ) -> ErrorReport:
        """Build, log and record a report for ``error``.

        Args:
            error: Exception that occurred
            context: Context information about the error

        Returns:
            ErrorReport describing the error
        """
        error_id = f"ERR_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.error_history):04d}"
        category, severity = self._classify_error(error)

        diagnostic_data = {"exception_type": type(error).__name__}
        stage = getattr(error, "stage", None)
        if stage:
            diagnostic_data["stage"] = stage

        report = ErrorReport(
            error_id=error_id,
            category=category,
            severity=severity,
            message=str(error),
            context=context or self._create_default_context(),
            traceback_info="".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ),
            diagnostic_data=diagnostic_data,
        )

        self.statistics["total_errors"] += 1
        if severity == ErrorSeverity.CRITICAL:
            self.statistics["critical_failures"] += 1

        self._log_error(report)

        self.error_history.append(report)
        if len(self.error_history) > self.MAX_HISTORY:
            self.error_history = self.error_history[-self.TRIMMED_HISTORY :]

        return report

    def _classify_error(self, error: Exception) -> Tuple[ErrorCategory, ErrorSeverity]:
        """Classify error by category and severity."""
        if isinstance(error, OFDMError):
            return error.category, error.severity

        error_str = str(error).lower()

        if isinstance(error, (FloatingPointError, ZeroDivisionError, OverflowError)):
            return ErrorCategory.COMPUTATION_ERROR, ErrorSeverity.MEDIUM

        if any(keyword in error_str for keyword in ["nan", "inf", "overflow", "underflow"]):
            return ErrorCategory.COMPUTATION_ERROR, ErrorSeverity.MEDIUM

        if any(keyword in error_str for keyword in ["config", "parameter", "validation"]):
            return ErrorCategory.CONFIGURATION_ERROR, ErrorSeverity.MEDIUM

        if isinstance(error, (MemoryError, SystemExit, KeyboardInterrupt)):
            return ErrorCategory.SYSTEM_ERROR, ErrorSeverity.CRITICAL

        return ErrorCategory.SYSTEM_ERROR, ErrorSeverity.MEDIUM

    def _create_default_context(self) -> ErrorContext:
        return ErrorContext(
            operation="unknown",
            component="unknown",
            parameters={},
            timestamp=datetime.now(),
            system_info=get_system_info(),
            memory_info=get_memory_info(),
        )

    def _log_error(self, report: ErrorReport) -> None:
        log_message = f"[{report.error_id}] {report.category.value.upper()}: {report.message}"

        if report.severity == ErrorSeverity.CRITICAL:
            logger.critical(log_message)
        elif report.severity == ErrorSeverity.HIGH:
            logger.error(log_message)
        elif report.severity == ErrorSeverity.MEDIUM:
            logger.warning(log_message)
        else:
            logger.info(log_message)

    def get_error_statistics(self) -> Dict[str, Any]:
        """Get error handling statistics."""
        stats = dict(self.statistics)

        category_counts: Dict[str, int] = {}
        severity_counts: Dict[str, int] = {}
        for report in self.error_history:
            category_counts[report.category.value] = (
                category_counts.get(report.category.value, 0) + 1
            )
            severity_counts[report.severity.value] = (
                severity_counts.get(report.severity.value, 0) + 1
            )

        stats["category_breakdown"] = category_counts
        stats["severity_breakdown"] = severity_counts
        return stats

    def generate_diagnostic_report(self, include_traceback: bool = False) -> str:
        """Generate a human-readable diagnostic report.

        Args:
            include_traceback: Include full traceback information

        Returns:
            Formatted diagnostic report
        """
        report = []
        report.append("=" * 80)
        report.append("OFDM LINK SIMULATOR - ERROR DIAGNOSTIC REPORT")
        report.append("=" * 80)
        report.append(f"Generated: {datetime.now().isoformat()}")
        report.append("")

        stats = self.get_error_statistics()
        report.append("ERROR STATISTICS:")
        report.append(f"  Total Errors: {stats['total_errors']}")
        report.append(f"  Critical Failures: {stats['critical_failures']}")
        report.append("")

        if stats["category_breakdown"]:
            report.append("ERROR CATEGORIES:")
            for category, count in stats["category_breakdown"].items():
                report.append(f"  {category}: {count}")
            report.append("")

        recent_errors = self.error_history[-10:]
        if recent_errors:
            report.append("RECENT ERRORS (last 10):")
            for error_report in recent_errors:
                report.append(
                    f"  [{error_report.error_id}] {error_report.category.value}: "
                    f"{error_report.message}"
                )
                if include_traceback and error_report.traceback_info:
                    report.append(f"    Traceback: {error_report.traceback_info}")
            report.append("")

        system_info = get_system_info()
        memory_info = get_memory_info()

        report.append("SYSTEM INFORMATION:")
        report.append(f"  Python Version: {system_info['python_version']}")
        report.append(f"  Platform: {system_info['platform']}")
        report.append(f"  NumPy Version: {system_info['numpy_version']}")
        report.append(f"  Process Memory: {memory_info['process_memory_mb']:.1f} MB")
        report.append("=" * 80)

        return "\n".join(report)

    def clear_error_history(self) -> None:
        """Clear error history and reset statistics."""
        self.error_history.clear()
        self.statistics = {"total_errors": 0, "critical_failures": 0}
        logger.info("Error history and statistics cleared")


def get_system_info() -> Dict[str, Any]:
    """System information attached to error contexts."""
    return {
        "python_version": sys.version,
        "platform": sys.platform,
        "numpy_version": np.__version__,
        "cpu_count": psutil.cpu_count(),
    }


def get_memory_info() -> Dict[str, Any]:
    """Process and system memory snapshot attached to error contexts."""
    memory = psutil.virtual_memory()
    return {
        "process_memory_mb": psutil.Process().memory_info().rss / (1024**2),
        "system_available_mb": memory.available / (1024**2),
        "system_percent_used": memory.percent,
    }


# Global error handler instance
_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance."""
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def handle_error(error: Exception, context: Optional[ErrorContext] = None) -> ErrorReport:
    """Handle an error using the global error handler."""
    return get_error_handler().handle_error(error, context)


def create_error_context(operation: str, component: str, **parameters) -> ErrorContext:
    """Create error context for error handling.

    Args:
        operation: Name of the operation being performed
        component: Name of the component where error occurred
        **parameters: Additional parameters to include in context

    Returns:
        ErrorContext object
    """
    return ErrorContext(
        operation=operation,
        component=component,
        parameters=parameters,
        timestamp=datetime.now(),
        system_info=get_system_info(),
        memory_info=get_memory_info(),
    )
