#!/usr/bin/env python3
"""
Deployment config validation: JSON schema plus a few cross-field rules.
"""

import json
from pathlib import Path

import jsonschema

SCHEMA_FILE = Path(__file__).parent / 'deployment-config-schema.json'


def load_schema():
    with open(SCHEMA_FILE, 'r') as f:
        return json.load(f)


def validate_against_schema(config):
    """
    Validate config against the JSON schema.
    Returns list of readable errors (empty when valid).
    """
    validator = jsonschema.Draft7Validator(load_schema())
    errors = []
    for error in sorted(validator.iter_errors(config), key=lambda e: list(e.path)):
        error_path = ' -> '.join(str(p) for p in error.path) if error.path else 'root'
        errors.append(f"Schema validation failed at '{error_path}': {error.message}")
    return errors


def check_rules(config):
    """Rules the schema cannot express. Returns list of errors."""
    errors = []
    server = config.get('server', {})
    release = config.get('release', {})
    storage = config.get('storage', {})

    if not (server.get('host') or server.get('host_env')):
        errors.append("server needs 'host' or 'host_env'")
    if not (server.get('user') or server.get('user_env')):
        errors.append("server needs 'user' or 'user_env'")
    if not (server.get('ssh_key_path') or server.get('ssh_key_env')):
        errors.append("server needs 'ssh_key_path' or 'ssh_key_env'")

    target = release.get('target_dir', '').rstrip('/')
    backup = release.get('backup_dir', '').rstrip('/')
    if target and backup and (backup == target or backup.startswith(target + '/')):
        errors.append("release.backup_dir must not be inside release.target_dir")

    if storage.get('backend') == 's3' and not storage.get('bucket_name'):
        errors.append("storage.bucket_name is required when storage.backend is 's3'")

    return errors


def validate_config(config):
    """Returns (is_valid, errors_list)."""
    if not config:
        return False, ["Config is empty"]

    errors = validate_against_schema(config)
    if errors:
        return False, errors

    errors = check_rules(config)
    return len(errors) == 0, errors
