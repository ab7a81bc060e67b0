#!/usr/bin/env python3
"""
Deployment error taxonomy.

Every error carries the pipeline phase it was raised in so the CLI can
report which phase failed.
"""


class DeploymentError(Exception):
    """Base class for all deployment failures."""

    phase = 'deploy'

    def __init__(self, message, phase=None):
        super().__init__(message)
        if phase:
            self.phase = phase


class ConfigError(DeploymentError):
    """Deployment configuration is missing or invalid."""

    phase = 'config'


class PackagingError(DeploymentError):
    """Build inputs are missing or the artifact could not be written."""

    phase = 'package'


class TransportError(DeploymentError):
    """Auth failure, network failure, timeout or partial copy."""

    phase = 'transfer'


class StorageError(DeploymentError):
    """Artifact could not be published to the storage backend."""

    phase = 'publish'


class ApplyError(DeploymentError):
    """Extraction or supervisor interaction failed on the target host."""

    phase = 'apply'

    def __init__(self, message, step=None, phase=None):
        super().__init__(message, phase)
        self.step = step


class BackupError(DeploymentError):
    """Snapshot or cleanup failed. Never aborts the pipeline."""

    phase = 'backup'


class CommandError(RuntimeError):
    """A shell command run by an executor exited non-zero."""

    def __init__(self, command, returncode, stdout='', stderr=''):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = stderr.strip() or stdout.strip()
        super().__init__(f"Command failed (exit {returncode}): {detail}")
