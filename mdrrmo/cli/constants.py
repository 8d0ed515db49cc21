"""Exit codes used by the CLI."""

SUCCESS_EXIT_CODE = 0
UNHEALTHY_EXIT_CODE = 1
VALIDATION_EXIT_CODE = 2
SYSTEM_EXIT_CODE = 3
