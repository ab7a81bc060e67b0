"""
Configuration validation and workflow generation package.

This package contains modules for validating the deployment config and
generating the GitHub Actions deploy workflow.
"""

__all__ = ['validation', 'workflow']
