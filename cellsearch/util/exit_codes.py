"""Documented exit codes for the cellsearch CLI.

Exit codes follow UNIX conventions:
- 0: Success (including "no cells found")
- 1: General/unspecified error
- 2: Invalid command-line arguments or usage
- 3-4: Application-specific errors

Usage:
    from cellsearch.util.exit_codes import ExitCode
    sys.exit(ExitCode.BACKEND_ERROR)
"""

from __future__ import annotations


class ExitCode:
    """Exit code constants for cellsearch processes.

    Attributes:
        SUCCESS: Normal termination. An empty cell list is still a success.
        GENERAL_ERROR: Unspecified runtime error.
        INVALID_ARGS: Command-line argument validation failed.
        DEVICE_UNAVAILABLE: SDR device could not be opened or is busy.
        BACKEND_ERROR: PHY backend could not be imported or is incomplete.
    """

    SUCCESS: int = 0
    GENERAL_ERROR: int = 1
    INVALID_ARGS: int = 2
    DEVICE_UNAVAILABLE: int = 3
    BACKEND_ERROR: int = 4

    @classmethod
    def message(cls, code: int) -> str:
        """Return a human-readable message for an exit code."""
        messages = {
            cls.SUCCESS: "Success",
            cls.GENERAL_ERROR: "General error",
            cls.INVALID_ARGS: "Invalid arguments",
            cls.DEVICE_UNAVAILABLE: "SDR device unavailable",
            cls.BACKEND_ERROR: "PHY backend unavailable",
        }
        return messages.get(code, f"Unknown exit code {code}")
