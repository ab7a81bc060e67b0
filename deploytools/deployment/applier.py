#!/usr/bin/env python3
"""
Release Applier: turns a staged artifact into the live release.

Order on the target host:
    1. back up the live release (best effort)
    2. extract the artifact over the target directory
    3. create .env with defaults if it does not exist
    4. create the log directory
    5. reload the PM2 process if registered, start it otherwise
    6. pm2 save

A failure in steps 2-6 (a failed command or a dropped connection) raises
ApplyError naming the step and leaves the target as it is.
Nothing is rolled back automatically; see the `rollback` command.
"""

import shlex
from dataclasses import dataclass
from typing import Any

from .backup import BackupRotator, backup_members
from .errors import ApplyError, CommandError, TransportError
from .lock import LeaseLock
from .outcome import Degraded, Skipped
from .utils import remote_path

EXTRACT_MODES = ('overwrite', 'swap')


@dataclass
class ApplyResult:
    target_dir: str
    action: str
    backup: Any
    env_created: bool


def render_env(release_config):
    """Default .env contents: NODE_ENV, PORT, then configured extras."""
    values = {'NODE_ENV': 'production', 'PORT': release_config.get('default_port', 3000)}
    values.update(release_config.get('env_defaults') or {})
    return ''.join(f"{key}={value}\n" for key, value in values.items())


class ReleaseApplier:

    def __init__(self, executor, supervisor, config, rotator=None):
        self.executor = executor
        self.supervisor = supervisor
        self.app = config['app']
        self.release = config['release']
        self.lock_config = config.get('lock', {})
        self.rotator = rotator or BackupRotator(
            executor, backup_members(config), config['backups']['keep']
        )

        if self.release['extract_mode'] not in EXTRACT_MODES:
            raise ApplyError(f"Unknown extract_mode: {self.release['extract_mode']}", step='config')

    @property
    def process_name(self):
        return self.app.get('process_name') or self.app['name']

    def _step(self, name, func, *args):
        try:
            return func(*args)
        except (CommandError, TransportError) as e:
            raise ApplyError(f"{name} step failed: {e}", step=name)

    def has_live_release(self, target_dir):
        return self.executor.is_dir(remote_path(target_dir, self.app['build_dir']))

    def _backup_live_release(self, target_dir):
        try:
            live = self.has_live_release(target_dir)
        except TransportError as e:
            print(f"WARNING: backup skipped: {e}")
            return Degraded(str(e))
        if not live:
            return Skipped(f"no live release in {target_dir}")
        return self.rotator.snapshot(target_dir, self.release['backup_dir'])

    def _extract_overwrite(self, artifact, target_dir):
        self.executor.run_multi([
            f"mkdir -p {shlex.quote(target_dir)}",
            f"tar -xzf {shlex.quote(artifact)} -C {shlex.quote(target_dir)}",
        ])

    def _extract_swap(self, artifact, target_dir):
        """Build the new release beside the old one, then rename it into place."""
        target = target_dir.rstrip('/')
        incoming = shlex.quote(f"{target}.incoming")
        previous = shlex.quote(f"{target}.previous")
        quoted_target = shlex.quote(target)

        commands = [
            f"rm -rf {incoming} {previous}",
            f"mkdir -p {incoming}",
            f"tar -xzf {shlex.quote(artifact)} -C {incoming}",
        ]
        # operator state is carried over from the old release
        for kept in (self.release['env_file'], self.release['log_dir']):
            if kept.startswith('/'):
                continue
            old = shlex.quote(remote_path(target, kept))
            new = shlex.quote(remote_path(f"{target}.incoming", kept))
            commands.append(f"if [ -e {old} ]; then mv {old} {new}; fi")
        commands += [
            f"if [ -d {quoted_target} ]; then mv {quoted_target} {previous}; fi",
            f"mv {incoming} {quoted_target}",
            f"rm -rf {previous}",
        ]
        self.executor.run_multi(commands)

    def _ensure_env(self, target_dir):
        env_path = remote_path(target_dir, self.release['env_file'])
        if self.executor.exists(env_path):
            print(f"Keeping existing {self.release['env_file']}")
            return False
        self.executor.write_file(env_path, render_env(self.release))
        print(f"Created {self.release['env_file']} with defaults")
        return True

    def _ensure_log_dir(self, target_dir):
        log_dir = remote_path(target_dir, self.release['log_dir'])
        self.executor.run_check(f"mkdir -p {shlex.quote(log_dir)}")

    def _start_or_reload(self):
        config = self.app['supervisor_config']
        if self.supervisor.describe(self.process_name):
            print(f"Reloading {self.process_name} (update env)")
            self.supervisor.reload(config, refresh_env=True)
            return 'reload'
        print(f"Starting {self.process_name}")
        self.supervisor.start(config)
        return 'start'

    def _apply(self, staged_artifact, target_dir):
        backup = self._backup_live_release(target_dir)

        if self.release['extract_mode'] == 'swap':
            self._step('extract', self._extract_swap, staged_artifact, target_dir)
        else:
            self._step('extract', self._extract_overwrite, staged_artifact, target_dir)
        print(f"[OK] Extracted {staged_artifact} into {target_dir}")

        env_created = self._step('env', self._ensure_env, target_dir)
        self._step('logs', self._ensure_log_dir, target_dir)
        action = self._step('supervisor', self._start_or_reload)
        self._step('save', self.supervisor.save)
        print(f"[OK] Release live ({action})")

        return ApplyResult(target_dir, action, backup, env_created)

    def apply(self, staged_artifact, target_dir=None):
        target_dir = target_dir or self.release['target_dir']

        if self.lock_config.get('enabled'):
            lock = LeaseLock(self.executor, target_dir, self.lock_config.get('ttl_seconds', 900))
            self._step('lock', lock.acquire)
            try:
                return self._apply(staged_artifact, target_dir)
            finally:
                lock.release()
        return self._apply(staged_artifact, target_dir)
