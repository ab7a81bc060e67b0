#!/usr/bin/env python3
"""
Base storage backend interface for release artifacts.
"""


class StorageBackend:
    """Base interface for storage backends."""

    def upload_file(self, local_path, storage_key):
        """Upload local file to storage. Returns its location."""
        raise NotImplementedError

    def artifact_key(self, metadata, filename):
        """Key under which a release file is stored: <app>/<label>/<file>."""
        return f"{metadata['app']}/{metadata['label']}/{filename}"
