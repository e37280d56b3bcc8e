"""Exit codes shared by CLI commands."""

VALIDATION_EXIT_CODE = 1
PROVIDER_EXIT_CODE = 2
SYSTEM_EXIT_CODE = 3

__all__ = ["PROVIDER_EXIT_CODE", "SYSTEM_EXIT_CODE", "VALIDATION_EXIT_CODE"]
