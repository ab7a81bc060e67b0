"""
Deployment and orchestration package.

This package contains modules for packaging, transferring, applying,
backing up and rolling back releases of a Node.js application.
"""

__all__ = [
    'orchestrator', 'packager', 'transporter', 'applier', 'backup',
    'supervisor', 'lock', 'rollback', 'outcome', 'errors', 'utils'
]
