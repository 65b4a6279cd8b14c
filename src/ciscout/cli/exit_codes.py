"""Process exit codes of the ciscout CLI."""

EXIT_SUCCESS = 0
EXIT_NO_PLATFORM = 1
EXIT_SCAN_ERROR = 2
EXIT_INVALID_USAGE = 3
