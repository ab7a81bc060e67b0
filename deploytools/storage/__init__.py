"""
Storage backend abstraction package.

This package provides abstraction for different storage backends
(local filesystem, S3) for release artifacts and their metadata.
"""

from .local import LocalStorage
from .s3 import S3Storage
from ..deployment.errors import ConfigError


def get_storage_backend(config):
    """Factory function to get appropriate storage backend."""
    storage_mode = config['storage'].get('backend', 'local')

    if storage_mode == 'local':
        return LocalStorage()
    elif storage_mode == 's3':
        return S3Storage(config['storage'])
    else:
        raise ConfigError(f"Unknown storage backend: {storage_mode}")


__all__ = ['LocalStorage', 'S3Storage', 'get_storage_backend']
