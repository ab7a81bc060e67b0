#!/usr/bin/env python3
"""
Rollback Module
Restores a release from a backup on the target host. Operator invoked only;
a failed apply never triggers this on its own.
"""

import shlex

from .errors import ApplyError, CommandError
from .utils import remote_path


def select_backup(rotator, backup_dir, backup_name=None):
    """Newest backup, or the named one if it exists."""
    backups = rotator.list_backups(backup_dir)
    if not backups:
        raise ApplyError(f"No backups found in {backup_dir}", step='select', phase='rollback')

    if backup_name is None:
        return backups[0]
    if backup_name not in backups:
        raise ApplyError(
            f"Backup {backup_name} not found (available: {', '.join(backups)})",
            step='select', phase='rollback'
        )
    return backup_name


def rollback(executor, supervisor, rotator, config, backup_name=None):
    """Extract a backup over the target directory and reload the process."""
    release = config['release']
    target_dir = release['target_dir']
    backup_dir = release['backup_dir']
    process_name = config['app'].get('process_name') or config['app']['name']
    supervisor_config = config['app']['supervisor_config']

    name = select_backup(rotator, backup_dir, backup_name)
    backup_path = remote_path(backup_dir, name)
    print(f"Restoring {name} into {target_dir}")

    try:
        executor.run_multi([
            f"mkdir -p {shlex.quote(target_dir)}",
            f"tar -xzf {shlex.quote(backup_path)} -C {shlex.quote(target_dir)}",
        ])
    except CommandError as e:
        raise ApplyError(f"restore step failed: {e}", step='restore', phase='rollback')

    try:
        if supervisor.describe(process_name):
            supervisor.reload(supervisor_config, refresh_env=True)
            action = 'reload'
        else:
            supervisor.start(supervisor_config)
            action = 'start'
        supervisor.save()
    except CommandError as e:
        raise ApplyError(f"supervisor step failed: {e}", step='supervisor', phase='rollback')

    print(f"[OK] Rolled back to {name} ({action})")
    return name
