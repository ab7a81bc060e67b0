#!/usr/bin/env python3
"""
Local storage backend: artifacts stay where the packager wrote them.
"""

from .base import StorageBackend


class LocalStorage(StorageBackend):
    """Local storage backend for development and single-runner setups."""

    def upload_file(self, local_path, storage_key):
        """No-op for local mode - file already exists locally."""
        return str(local_path)
