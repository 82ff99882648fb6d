"""
Utility functions for the application.
"""
from typing import Any, Dict
from datetime import datetime
import time


def format_response(data: Any, message: str = "Success") -> Dict[str, Any]:
    """Format API response."""
    return {
        "message": message,
        "data": data
    }


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"error": message}
    if details:
        response["details"] = details
    return response


def timestamp_millis() -> int:
    """Current time in milliseconds, used in generated ids and filenames."""
    return int(time.time() * 1000)


def format_report_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def format_report_datetime(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")
