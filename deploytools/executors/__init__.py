#!/usr/bin/env python3
"""
Executor factory and package exports.
"""

from .local import LocalExecutor
from .ssh import RemoteExecutor


def get_executor(config, local=False):
    """
    Factory function to create appropriate executor.

    Args:
        config: Deployment configuration dict
        local: Run on this machine instead of the configured server

    Returns:
        LocalExecutor or RemoteExecutor instance
    """
    if local:
        return LocalExecutor()
    return RemoteExecutor(config['server'])


# Package exports
__all__ = ['LocalExecutor', 'RemoteExecutor', 'get_executor']
