"""JSON output formatter for CLI."""

from __future__ import annotations

import json
from typing import Any

from scriptbreakdown.cli.formatters.base import OutputFormat, OutputFormatter
from scriptbreakdown.exceptions import BreakdownError


class JsonFormatter(OutputFormatter[Any]):
    """Generic JSON formatter for CLI output."""

    def format(self, data: Any, format_type: OutputFormat = OutputFormat.JSON) -> str:  # noqa: ARG002
        """Format data as JSON.

        Args:
            data: Data to format
            format_type: Output format type (ignored, always JSON)

        Returns:
            JSON string
        """
        if hasattr(data, "to_dict"):
            return json.dumps(data.to_dict(), default=str, indent=2)
        if hasattr(data, "model_dump"):
            return json.dumps(data.model_dump(), default=str, indent=2)
        if isinstance(data, dict | list | tuple):
            return json.dumps(data, default=str, indent=2)
        return json.dumps({"value": data}, default=str, indent=2)

    def format_success(self, message: str, data: Any = None) -> str:
        """Format a success response.

        Args:
            message: Success message
            data: Optional additional data

        Returns:
            JSON string
        """
        response: dict[str, Any] = {"success": True, "message": message}
        if data is not None:
            response["data"] = data
        return json.dumps(response, default=str, indent=2)

    def format_error_response(self, error: str | Exception, code: int = 1) -> str:
        """Format an error response.

        Breakdown errors contribute their kind, message and hint so callers
        can tell a timeout from bad input.

        Args:
            error: Error message or exception
            code: Exit code

        Returns:
            JSON string
        """
        response: dict[str, Any] = {"success": False, "code": code}
        if isinstance(error, BreakdownError):
            response["error"] = error.message
            response["kind"] = type(error).__name__
            if error.hint:
                response["hint"] = error.hint
        else:
            response["error"] = str(error)
        return json.dumps(response, default=str, indent=2)
