#!/usr/bin/env python3
"""
Transporter: copies the artifact to a staging path on the target host.

One attempt per call. Re-running re-copies the same artifact, so callers
retry by invoking again.
"""

import posixpath
import shlex

from .errors import CommandError, TransportError
from .utils import sha256_file


class Transporter:

    def __init__(self, executor):
        self.executor = executor

    def transfer(self, artifact_path, staging_path):
        """Upload artifact and verify the remote copy by checksum."""
        expected = sha256_file(artifact_path)
        print(f"Uploading {artifact_path} -> {staging_path}")

        try:
            staging_dir = posixpath.dirname(staging_path)
            if staging_dir:
                self.executor.run_check(f"mkdir -p {shlex.quote(staging_dir)}")
            self.executor.upload(str(artifact_path), staging_path)
            actual = self.executor.sha256(staging_path)
        except (CommandError, OSError) as e:
            raise TransportError(f"Transfer of {artifact_path} failed: {e}")

        if actual != expected:
            raise TransportError(
                f"Partial transfer: remote sha256 {actual or '<empty>'} != local {expected}"
            )

        print(f"[OK] Transferred and verified ({expected[:12]})")
        return staging_path
