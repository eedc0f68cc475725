"""Exception hierarchy for scriptbreakdown with helpful error messages."""

from __future__ import annotations

from typing import Any


class BreakdownError(Exception):
    """Base exception with helpful formatting for all breakdown errors.

    Provides structured error messages with hints and details so callers
    (the CLI, an editor shell) can pick an appropriate message for the user.
    """

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize exception with structured error information.

        Args:
            message: Primary error message describing what went wrong
            hint: Optional hint suggesting how to fix the problem
            details: Optional dictionary with additional debugging information
        """
        self.message = message
        self.hint = hint
        self.details = details
        super().__init__(self.format_error())

    def format_error(self) -> str:
        """Format the error message with hint and details.

        Returns:
            Formatted error string with all available information
        """
        output = f"Error: {self.message}"
        if self.hint:
            output += f"\nHint: {self.hint}"
        if self.details:
            details_str = "\n".join(
                f"  {key}: {value}" for key, value in self.details.items()
            )
            output += f"\nDetails:\n{details_str}"
        return output


class ConfigurationError(BreakdownError):
    """Configuration errors including invalid settings and missing config files."""

    pass


class ValidationError(BreakdownError):
    """Input validation errors with details about what was expected."""

    pass


class InvalidInputError(ValidationError):
    """The script, token list or document handed to the core is unusable.

    Raised before any parser or converter state is touched.
    """

    pass


class ParseError(BreakdownError):
    """Screenplay parsing errors."""

    pass


class ParseLineError(ParseError):
    """A single line could not be classified or consumed.

    The parser recovers from this locally: the line is logged and skipped
    and parsing continues with the next line.
    """

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        line: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize with the offending line.

        Args:
            message: What went wrong with the line
            line_number: 1-based line number in the normalized script
            line: The raw line content
            hint: Optional hint for fixing the line
        """
        self.line_number = line_number
        self.line = line
        details: dict[str, Any] = {}
        if line_number is not None:
            details["line_number"] = line_number
        if line is not None:
            details["line"] = repr(line)
        super().__init__(message=message, hint=hint, details=details or None)


class ConversionTimeoutError(BreakdownError):
    """Document conversion exceeded its time bound.

    No partial result is produced.
    """

    def __init__(self, operation: str, timeout: float) -> None:
        """Initialize timeout error.

        Args:
            operation: Name of the conversion that timed out
            timeout: The bound in seconds
        """
        self.operation = operation
        self.timeout = timeout
        super().__init__(
            message=f"{operation} timed out after {timeout:g} seconds",
            hint="The document may be too large or malformed; try a smaller file",
            details={"operation": operation, "timeout": timeout},
        )


class MetricsDegenerateError(BreakdownError):
    """Metrics input with zero or non-finite line or page counts."""

    pass


class ExportError(BreakdownError):
    """Errors writing breakdown rows or raw scripts to disk."""

    pass


class ScriptFileNotFoundError(BreakdownError):
    """Script file not found errors with helpful path information."""

    pass


def check_config_keys(config: dict[str, Any]) -> None:
    """Check for common configuration mistakes.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ConfigurationError: With hints about correct configuration keys
    """
    wrong_keys = {
        "levels": "vfx_levels",
        "difficulty_levels": "vfx_levels",
        "indent": "indent_threshold",
        "shots": "shots_per_page",
        "timeout": "conversion_timeout",
    }

    for wrong, correct in wrong_keys.items():
        if wrong in config:
            raise ConfigurationError(
                message=f"Invalid configuration key '{wrong}'",
                hint=f"Use '{correct}' instead of '{wrong}'",
                details={
                    "found_keys": list(config.keys()),
                    "invalid_key": wrong,
                    "correct_key": correct,
                },
            )
