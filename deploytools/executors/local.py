#!/usr/bin/env python3
"""
Local executor for release operations (apply on the runner itself).
"""

import shutil
import subprocess
from pathlib import Path

from .base import BaseExecutor
from ..deployment.errors import CommandError


class LocalExecutor(BaseExecutor):
    """Runs commands with local bash (used with --local and in tests)."""

    def run(self, command, input=None, timeout=None):
        try:
            result = subprocess.run(
                ['bash', '-c', command],
                input=input, capture_output=True, text=True, timeout=timeout
            )
        except subprocess.TimeoutExpired:
            raise CommandError(command, -1, '', f"timed out after {timeout}s")
        return result.stdout, result.stderr, result.returncode

    def upload(self, local_path, remote_path):
        destination = Path(remote_path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(local_path, destination)
        return str(destination)
