#!/usr/bin/env python3
"""
Lease lock for a target directory.

The lock is a directory created with `mkdir` (atomic on POSIX) holding a
`lease` file of "<owner> <expires-epoch>". Expired leases are broken so a
crashed deploy cannot block the target forever. A lock whose lease is not
written yet counts as held until `ttl_seconds` after the directory's mtime.
"""

import os
import shlex
import socket
import time

from .errors import ApplyError, CommandError, TransportError
from .utils import remote_path


def default_owner():
    run_id = os.environ.get('GITHUB_RUN_ID') or os.environ.get('CI_PIPELINE_ID')
    return run_id or f"{socket.gethostname()}:{os.getpid()}"


class LeaseLock:

    def __init__(self, executor, target_dir, ttl_seconds=900, owner=None, clock=time.time):
        self.executor = executor
        self.lock_dir = target_dir.rstrip('/') + '.lock'
        self.lease_file = remote_path(self.lock_dir, 'lease')
        self.ttl = ttl_seconds
        self.owner = owner or default_owner()
        self.clock = clock
        self.held = False

    def _try_mkdir(self):
        _, _, returncode = self.executor.run(f"mkdir {shlex.quote(self.lock_dir)}")
        return returncode == 0

    def _read_lease(self):
        """(owner, expires) of the current holder; expires is 0 if the lock vanished."""
        try:
            owner, expires = self.executor.read_file(self.lease_file).rsplit(None, 1)
            return owner, float(expires)
        except (CommandError, ValueError):
            pass

        stdout, _, returncode = self.executor.run(f"stat -c %Y {shlex.quote(self.lock_dir)}")
        try:
            created = float(stdout.strip())
        except ValueError:
            created = None
        if returncode != 0 or created is None:
            return None, 0.0
        return None, created + self.ttl

    def _write_lease(self):
        pending = self.lease_file + '.tmp'
        self.executor.write_file(pending, f"{self.owner} {self.clock() + self.ttl:.0f}\n")
        self.executor.run_check(f"mv {shlex.quote(pending)} {shlex.quote(self.lease_file)}")

    def acquire(self):
        parent = os.path.dirname(self.lock_dir)
        if parent:
            self.executor.run_check(f"mkdir -p {shlex.quote(parent)}")

        if not self._try_mkdir():
            owner, expires = self._read_lease()
            if expires > self.clock():
                raise ApplyError(
                    f"Target is locked by {owner or 'another deploy'} until {time.ctime(expires)}",
                    step='lock',
                )
            print(f"WARNING: breaking expired deploy lock held by {owner or 'unknown'}")
            self.executor.run_check(f"rm -rf {shlex.quote(self.lock_dir)}")
            if not self._try_mkdir():
                raise ApplyError(f"Could not acquire deploy lock {self.lock_dir}", step='lock')

        self._write_lease()
        self.held = True
        print(f"[OK] Deploy lock acquired ({self.owner})")

    def release(self):
        """Remove the lock. A failure only warns; the lease expires on its own."""
        if not self.held:
            return
        self.held = False
        try:
            _, stderr, returncode = self.executor.run(f"rm -rf {shlex.quote(self.lock_dir)}")
        except TransportError as e:
            print(f"WARNING: could not release deploy lock {self.lock_dir}: {e}")
            return
        if returncode != 0:
            print(f"WARNING: could not release deploy lock {self.lock_dir}: {stderr.strip()}")
