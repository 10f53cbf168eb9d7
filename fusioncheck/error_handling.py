"""
Error handling and reporting for fusioncheck.

This module provides the error taxonomy used by the parser, the analysis
engine and the surrounding tooling, plus the central handler that owns the
package logger.
"""

import sys
import traceback
import logging
from enum import Enum
from typing import Optional, Dict, Any
from dataclasses import dataclass


class ErrorSeverity(Enum):
    """Error severity levels."""
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class ErrorCategory(Enum):
    """Categories of errors that can occur."""
    INPUT_ERROR = "Input Error"
    PARSE_ERROR = "Parse Error"
    DISASSEMBLY_ERROR = "Disassembly Error"
    PLUGIN_ERROR = "Plugin Error"
    CONFIGURATION_ERROR = "Configuration Error"
    INTERNAL_ERROR = "Internal Error"


@dataclass
class ErrorContext:
    """Context information for an error."""
    file: Optional[str] = None
    function: Optional[str] = None
    line_number: Optional[int] = None
    binary_path: Optional[str] = None
    address: Optional[str] = None
    additional_info: Optional[Dict[str, Any]] = None


class FusionCheckError(Exception):
    """Base exception class for fusioncheck errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL_ERROR,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[ErrorContext] = None,
        suggestion: Optional[str] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.suggestion = suggestion
        self.original_exception = original_exception

    def __str__(self):
        """Format error message with all context."""
        lines = [
            f"\n{'='*70}",
            f"{self.severity.value}: {self.category.value}",
            f"{'='*70}",
            f"\nMessage: {self.message}",
        ]

        if self.context.file:
            lines.append(f"File: {self.context.file}")
        if self.context.function:
            lines.append(f"Function: {self.context.function}")
        if self.context.line_number:
            lines.append(f"Line: {self.context.line_number}")
        if self.context.binary_path:
            lines.append(f"Binary: {self.context.binary_path}")
        if self.context.address is not None:
            lines.append(f"Address: {self.context.address}")
        if self.context.additional_info:
            lines.append("\nAdditional Information:")
            for key, value in self.context.additional_info.items():
                lines.append(f"  {key}: {value}")

        if self.suggestion:
            lines.append(f"\nSuggestion: {self.suggestion}")

        if self.original_exception:
            lines.append(f"\nOriginal Exception: {type(self.original_exception).__name__}")
            lines.append(f"  {str(self.original_exception)}")

        lines.append(f"{'='*70}\n")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Structured form used by the web API."""
        return {
            'error': type(self).__name__,
            'category': self.category.value,
            'severity': self.severity.value,
            'message': self.message,
            'suggestion': self.suggestion,
        }


class InputError(FusionCheckError):
    """Error related to invalid input."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('category', ErrorCategory.INPUT_ERROR)
        super().__init__(message, **kwargs)


class NoInstructionsFound(InputError):
    """
    The disassembly contained zero parseable instruction lines.

    Terminal for the run: it almost always means the upstream disassembler
    invocation failed or the wrong file was supplied.
    """

    def __init__(self, message: str = "No instructions found in disassembly", **kwargs):
        kwargs.setdefault(
            'suggestion',
            "Check that the disassembler ran successfully and produced "
            "objdump, llvm-objdump or otool style output."
        )
        super().__init__(message, **kwargs)


class UnresolvedFunctionContext(FusionCheckError):
    """Instructions appeared before any function header (recoverable)."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('category', ErrorCategory.PARSE_ERROR)
        kwargs.setdefault('severity', ErrorSeverity.WARNING)
        super().__init__(message, **kwargs)


class DisassemblyError(FusionCheckError):
    """Error invoking an external disassembler."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('category', ErrorCategory.DISASSEMBLY_ERROR)
        super().__init__(message, **kwargs)


class PluginError(FusionCheckError):
    """Error related to plugin system."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('category', ErrorCategory.PLUGIN_ERROR)
        super().__init__(message, **kwargs)


class ConfigurationError(FusionCheckError):
    """Error related to configuration."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('category', ErrorCategory.CONFIGURATION_ERROR)
        super().__init__(message, **kwargs)


class ErrorHandler:
    """Central error handler for fusioncheck."""

    def __init__(self, debug_mode: bool = False):
        self.debug_mode = debug_mode
        self.logger = self._setup_logger()

    def _setup_logger(self) -> logging.Logger:
        """Set up logging configuration."""
        logger = logging.getLogger("fusioncheck")
        logger.setLevel(logging.DEBUG if self.debug_mode else logging.INFO)

        # Repeated handlers would duplicate every record
        for handler in list(logger.handlers):
            if getattr(handler, '_fusioncheck_console', False):
                logger.removeHandler(handler)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG if self.debug_mode else logging.INFO)
        console_handler._fusioncheck_console = True

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(formatter)

        logger.addHandler(console_handler)

        return logger

    def handle_error(
        self,
        error: Exception,
        context: Optional[ErrorContext] = None,
        reraise: bool = False
    ):
        """
        Handle an error with appropriate logging and reporting.

        Args:
            error: The exception to handle
            context: Additional context information
            reraise: Whether to re-raise the exception after handling
        """
        if isinstance(error, FusionCheckError):
            self._log_error(error)
        else:
            wrapped = FusionCheckError(
                message=str(error),
                context=context,
                original_exception=error
            )
            self._log_error(wrapped)

        if self.debug_mode:
            traceback.print_exc()

        if reraise:
            raise error

    def _log_error(self, error: FusionCheckError):
        """Log a fusioncheck error with appropriate level."""
        error_message = str(error)

        if error.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(error_message)
        elif error.severity == ErrorSeverity.ERROR:
            self.logger.error(error_message)
        elif error.severity == ErrorSeverity.WARNING:
            self.logger.warning(error_message)
        else:
            self.logger.info(error_message)

    def log_info(self, message: str):
        """Log an informational message."""
        self.logger.info(message)


_error_handler: Optional[ErrorHandler] = None


def get_error_handler(debug_mode: bool = False) -> ErrorHandler:
    """Get or create the global error handler."""
    global _error_handler
    if _error_handler is None:
        _error_handler = ErrorHandler(debug_mode=debug_mode)
    return _error_handler


ERROR_MESSAGES = {
    "file_not_found": {
        "message": "Input file not found: {path}",
        "suggestion": "Check that the file path is correct and the file exists."
    },
    "no_disassembler": {
        "message": "No disassembler found (tried {tools})",
        "suggestion": "Install llvm-objdump or binutils, or pass existing output with --objdump."
    },
    "disassembly_failed": {
        "message": "{tool} failed on {path} (exit code {returncode})",
        "suggestion": "Check that the file is an ARM64 binary the tool can read."
    },
    "disassembly_timeout": {
        "message": "{tool} timed out after {timeout}s on {path}",
        "suggestion": "Disassemble a single function with --function, or raise the timeout."
    },
    "unknown_catalog": {
        "message": "Unknown rule catalog: {name}",
        "suggestion": "Use --list-rules to see the available catalogs."
    },
    "function_not_found": {
        "message": "No instructions in functions matching '{pattern}'",
        "suggestion": "The function filter is a substring of the symbol name; check the spelling."
    },
    "plugin_load_failed": {
        "message": "Failed to load plugin: {plugin_name}",
        "suggestion": "Check the plugin file for import or syntax errors."
    },
}

_ERROR_CLASSES = {
    "file_not_found": InputError,
    "no_disassembler": DisassemblyError,
    "disassembly_failed": DisassemblyError,
    "disassembly_timeout": DisassemblyError,
    "unknown_catalog": ConfigurationError,
    "function_not_found": NoInstructionsFound,
    "plugin_load_failed": PluginError,
}


def create_error(
    error_key: str,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    context: Optional[ErrorContext] = None,
    **format_args
) -> FusionCheckError:
    """
    Create a fusioncheck error from a predefined error message.

    Args:
        error_key: Key in ERROR_MESSAGES dictionary
        severity: Error severity level
        context: Error context
        **format_args: Arguments to format the error message

    Returns:
        Configured error instance of the class registered for the key
    """
    if error_key not in ERROR_MESSAGES:
        return FusionCheckError(
            message=f"Unknown error: {error_key}",
            severity=severity,
            context=context
        )

    error_info = ERROR_MESSAGES[error_key]
    message = error_info["message"].format(**format_args)
    suggestion = error_info.get("suggestion")
    error_class = _ERROR_CLASSES.get(error_key, FusionCheckError)

    return error_class(
        message,
        severity=severity,
        context=context,
        suggestion=suggestion
    )
