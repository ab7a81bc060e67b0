#!/usr/bin/env python3
"""
PM2 process supervisor client. Every call goes through an executor, so the
same code drives PM2 locally or over SSH.
"""

import shlex

from .errors import CommandError

# bash exit status for "command not found"
COMMAND_NOT_FOUND = 127


class PM2Supervisor:
    """describe / start / reload / save against the PM2 CLI."""

    def __init__(self, executor, cwd, env_name='production'):
        self.executor = executor
        self.cwd = cwd
        self.env_name = env_name

    def _pm2(self, args):
        return f"cd {shlex.quote(self.cwd)} && pm2 {args}"

    def describe(self, name):
        """True when a process with this name is registered."""
        command = self._pm2(f"describe {shlex.quote(name)}")
        stdout, stderr, returncode = self.executor.run(command)
        if returncode == COMMAND_NOT_FOUND:
            raise CommandError(command, returncode, stdout, stderr or 'pm2: command not found')
        return returncode == 0

    def start(self, config):
        self.executor.run_check(self._pm2(f"start {shlex.quote(config)} --env {self.env_name}"))

    def reload(self, config, refresh_env=True):
        args = f"reload {shlex.quote(config)}"
        if refresh_env:
            args += " --update-env"
        self.executor.run_check(self._pm2(args))

    def save(self):
        """Persist the process list so it survives a reboot."""
        self.executor.run_check(self._pm2("save"))
