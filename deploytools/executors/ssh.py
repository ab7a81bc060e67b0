#!/usr/bin/env python3
"""
Remote execution helpers for SSH operations.
Provides simple wrappers around ssh + scp with a private key.
"""

import os
import subprocess
import tempfile
from contextlib import contextmanager

from .base import BaseExecutor
from ..deployment.errors import ConfigError, TransportError
from ..deployment.utils import resolve_env

HOST_KEY_POLICIES = ('accept-new', 'strict', 'insecure')

# ssh reserves 255 for its own failures (auth, connection, host key)
SSH_ERROR_EXIT = 255


class RemoteExecutor(BaseExecutor):
    """SSH remote executor using key-based auth."""

    def __init__(self, server_config):
        self.server = server_config
        self.host = resolve_env(server_config, 'host')
        self.user = resolve_env(server_config, 'user')
        self.port = server_config.get('ssh_port', 22)
        self.connect_timeout = server_config.get('connect_timeout', 15)
        self.command_timeout = server_config.get('command_timeout', 300)
        self.policy = server_config.get('host_key_policy', 'accept-new')

        if not self.host or not self.user:
            raise ConfigError(
                f"SSH target not set: host ({server_config.get('host_env')}) "
                f"and user ({server_config.get('user_env')}) required"
            )
        if self.policy not in HOST_KEY_POLICIES:
            raise ConfigError(f"Unknown host_key_policy: {self.policy}")
        if self.policy == 'insecure':
            print(f"WARNING: host key verification disabled for {self.host} (host_key_policy: insecure)")

    @contextmanager
    def _identity(self):
        """Yield a private key path, materializing key content from env if needed."""
        key_path = self.server.get('ssh_key_path')
        if key_path:
            yield os.path.expanduser(key_path)
            return

        key_env = self.server.get('ssh_key_env')
        key_material = os.environ.get(key_env) if key_env else None
        if not key_material:
            raise ConfigError(f"SSH key not found: set ssh_key_path or {key_env}")

        fd, path = tempfile.mkstemp(prefix='deploy-key-')
        try:
            with os.fdopen(fd, 'w') as f:
                f.write(key_material.strip() + '\n')
            os.chmod(path, 0o600)
            yield path
        finally:
            os.remove(path)

    def _ssh_options(self, key_path):
        options = ['-i', key_path, '-o', 'BatchMode=yes', '-o', f'ConnectTimeout={self.connect_timeout}']

        if self.policy == 'insecure':
            options += ['-o', 'StrictHostKeyChecking=no', '-o', 'UserKnownHostsFile=/dev/null']
        elif self.policy == 'strict':
            options += ['-o', 'StrictHostKeyChecking=yes']
        else:
            options += ['-o', 'StrictHostKeyChecking=accept-new']

        known_hosts = self.server.get('known_hosts_file')
        if known_hosts and self.policy != 'insecure':
            options += ['-o', f'UserKnownHostsFile={os.path.expanduser(known_hosts)}']

        return options

    def build_ssh_cmd(self, key_path, remote_command):
        """Build ssh command list."""
        return [
            'ssh', *self._ssh_options(key_path),
            '-p', str(self.port),
            f'{self.user}@{self.host}',
            remote_command
        ]

    def build_scp_cmd(self, key_path, local_path, remote_path):
        return [
            'scp', *self._ssh_options(key_path),
            '-P', str(self.port),
            str(local_path),
            f'{self.user}@{self.host}:{remote_path}'
        ]

    def _call(self, cmd, input=None, timeout=None):
        timeout = timeout or self.command_timeout
        try:
            return subprocess.run(cmd, input=input, capture_output=True, text=True, timeout=timeout)
        except subprocess.TimeoutExpired:
            raise TransportError(f"{cmd[0]} to {self.host} timed out after {timeout}s")
        except OSError as e:
            raise TransportError(f"Could not run {cmd[0]}: {e}")

    def run(self, command, input=None, timeout=None):
        """Execute command on remote server via SSH."""
        with self._identity() as key_path:
            result = self._call(self.build_ssh_cmd(key_path, command), input, timeout)

        if result.returncode == SSH_ERROR_EXIT:
            raise TransportError(f"SSH to {self.user}@{self.host} failed: {result.stderr.strip()}")

        return result.stdout, result.stderr, result.returncode

    def upload(self, local_path, remote_path):
        """Upload file to remote server via SCP."""
        with self._identity() as key_path:
            result = self._call(self.build_scp_cmd(key_path, local_path, remote_path))

        if result.returncode != 0:
            raise TransportError(f"SCP upload failed (exit {result.returncode}): {result.stderr.strip()}")

        return remote_path
