"""Open an interactive shell inside a freshly extracted template."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def current_shell() -> str:
    shell = os.environ.get("SHELL", "").strip()
    if shell:
        return shell
    if sys.platform == "win32":
        return "cmd.exe"
    return "/bin/bash"


def start_shell(cwd: Path) -> int:
    """Run the user's shell in *cwd* and block until it exits."""
    r = subprocess.run([current_shell()], cwd=str(cwd.resolve()))
    return r.returncode
