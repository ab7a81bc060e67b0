#!/usr/bin/env python3
"""
Base executor interface for release operations on the target host.
"""

import shlex

from ..deployment.errors import CommandError


class BaseExecutor:
    """Interface for executors (local host or remote host over SSH)."""

    def run(self, command, input=None, timeout=None):
        """
        Run a shell command on the target host.

        Args:
            command: Shell command string (interpreted by bash)
            input: Optional text passed on stdin
            timeout: Seconds before the command is abandoned

        Returns:
            (stdout, stderr, returncode) tuple
        """
        raise NotImplementedError("Subclasses must implement run()")

    def upload(self, local_path, remote_path):
        """Copy a local file to the target host."""
        raise NotImplementedError("Subclasses must implement upload()")

    def run_check(self, command, input=None, timeout=None):
        """Run command and raise CommandError if it fails."""
        stdout, stderr, returncode = self.run(command, input=input, timeout=timeout)

        if returncode != 0:
            raise CommandError(command, returncode, stdout, stderr)

        return stdout

    def run_multi(self, commands, timeout=None):
        """Execute multiple commands in one session (joined with &&)."""
        return self.run_check(' && '.join(commands), timeout=timeout)

    def exists(self, path):
        _, _, returncode = self.run(f"test -e {shlex.quote(path)}")
        return returncode == 0

    def is_dir(self, path):
        _, _, returncode = self.run(f"test -d {shlex.quote(path)}")
        return returncode == 0

    def write_file(self, path, content):
        """Write text content to a file on the target host."""
        self.run_check(f"cat > {shlex.quote(path)}", input=content)

    def read_file(self, path):
        return self.run_check(f"cat {shlex.quote(path)}")

    def list_dir(self, path):
        """File names in a directory; empty when the directory does not exist."""
        quoted = shlex.quote(path)
        stdout = self.run_check(f"if [ -d {quoted} ]; then ls -1A {quoted}; fi")
        return [line for line in stdout.splitlines() if line.strip()]

    def sha256(self, path):
        stdout = self.run_check(f"sha256sum {shlex.quote(path)}")
        return stdout.split()[0] if stdout.strip() else ''
