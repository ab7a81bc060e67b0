#!/usr/bin/env python3
"""
Backup rotation for live releases.

A backup is backup-<YYYYmmdd-HHMMSS>[_NNN].tar.gz holding the release's build
output, package manifest, supervisor config and environment file. Only the
newest `keep` backups survive a rotation.
"""

import re
import shlex
from datetime import datetime

from .errors import BackupError, CommandError, TransportError
from .outcome import Degraded, Ok
from .utils import remote_path

BACKUP_PATTERN = re.compile(r'^backup-(\d{8}-\d{6})(?:_(\d+))?\.tar\.gz$')
DEFAULT_KEEP = 5


def backup_members(config):
    """Paths (relative to the target dir) captured in a backup."""
    app = config['app']
    return [app['build_dir'], 'package.json', app['supervisor_config'], config['release']['env_file']]


def sort_backups(names):
    """Newest first. Identical timestamps fall back to lexical order of the name."""
    matched = [name for name in names if BACKUP_PATTERN.match(name)]
    return sorted(matched, key=lambda name: (BACKUP_PATTERN.match(name).group(1), name), reverse=True)


class BackupRotator:

    def __init__(self, executor, members, keep=DEFAULT_KEEP, clock=datetime.now):
        self.executor = executor
        self.members = members
        self.keep = keep
        self.clock = clock

    def list_backups(self, backup_dir):
        return sort_backups(self.executor.list_dir(backup_dir))

    def _backup_name(self, existing):
        base = f"backup-{self.clock().strftime('%Y%m%d-%H%M%S')}"
        name = f"{base}.tar.gz"
        counter = 1
        while name in existing:
            name = f"{base}_{counter:03d}.tar.gz"
            counter += 1
        return name

    def create(self, target_dir, backup_dir):
        """Tar the members that exist. Raises BackupError."""
        try:
            present = [m for m in self.members if self.executor.exists(remote_path(target_dir, m))]
            if not present:
                raise BackupError(f"Nothing to back up in {target_dir}")

            name = self._backup_name(set(self.executor.list_dir(backup_dir)))
            backup_path = remote_path(backup_dir, name)
            self.executor.run_multi([
                f"mkdir -p {shlex.quote(backup_dir)}",
                f"tar -czf {shlex.quote(backup_path)} -C {shlex.quote(target_dir)} "
                + ' '.join(shlex.quote(m) for m in present),
            ])
        except CommandError as e:
            raise BackupError(f"Snapshot of {target_dir} failed: {e}")

        skipped = len(self.members) - len(present)
        print(f"[OK] Backup created: {backup_path}" + (f" ({skipped} missing files skipped)" if skipped else ""))
        return backup_path

    def prune(self, backup_dir):
        """Delete all but the newest `keep` backups. Returns names that could not be removed."""
        failures = []
        for name in self.list_backups(backup_dir)[self.keep:]:
            stale = remote_path(backup_dir, name)
            _, stderr, returncode = self.executor.run(f"rm -f {shlex.quote(stale)}")
            if returncode != 0:
                print(f"WARNING: could not remove old backup {name}: {stderr.strip()}")
                failures.append(name)
            else:
                print(f"Removed old backup: {name}")
        return failures

    def snapshot(self, target_dir, backup_dir):
        """Create a backup then rotate. Never raises for backup problems."""
        try:
            backup_path = self.create(target_dir, backup_dir)
        except (BackupError, TransportError) as e:
            print(f"WARNING: backup skipped: {e}")
            return Degraded(str(e))

        try:
            failures = self.prune(backup_dir)
        except (CommandError, TransportError) as e:
            print(f"WARNING: backup cleanup failed: {e}")
            return Degraded(f"cleanup failed: {e}", backup_path)

        if failures:
            return Degraded(f"could not remove {', '.join(failures)}", backup_path)
        return Ok(backup_path)
