"""CLI entry point for formcheck.

Enables invocation via `python -m formcheck`.
"""

import sys

from formcheck.cli.app import app

if __name__ == "__main__":
    exit_code = app()
    sys.exit(exit_code if exit_code is not None else 0)
