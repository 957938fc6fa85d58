"""
Utility functions for running system commands and verifying binary availability.

Functions:
    - run_cmd: Executes a system command and returns its exit code along with its
      standard output and error streams.
    - which_or_die: Checks for the presence of a specific binary on the system's
      PATH and terminates the process if it is unavailable.
    - has_binary: Non-fatal variant of which_or_die.
"""
import shutil
import subprocess
import sys
from typing import List, Tuple

from shrinkray.utils.logger import safe_print


def run_cmd(cmd: List[str]) -> Tuple[int, str, str]:
    """Run a command and return (code, stdout, stderr)."""
    p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True,
                       errors="replace")
    return p.returncode, p.stdout, p.stderr


def has_binary(binary: str) -> bool:
    """Return True when ``binary`` can be found on PATH."""
    return shutil.which(binary) is not None


def which_or_die(binary: str):
    """Check if a binary exists on PATH, exit if not found."""
    if not has_binary(binary):
        safe_print(f"ERROR: '{binary}' not found on PATH. Install {binary} first.",
                   file=sys.stderr)
        sys.exit(2)
