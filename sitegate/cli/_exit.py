"""Process exit codes shared by all subcommands."""

OK = 0
FAILED = 1  # validation errors, or warnings under --strict
USER_ERR = 2  # bad usage, missing or unparsable input
INTERNAL = 3

__all__ = ["OK", "FAILED", "USER_ERR", "INTERNAL"]
