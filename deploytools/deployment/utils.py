#!/usr/bin/env python3
"""
Deployment utilities - shared helper functions.
"""

import copy
import hashlib
import os
import posixpath
from datetime import datetime
from pathlib import Path

import yaml

from .errors import ConfigError


DEFAULT_CONFIG = {
    'app': {
        'name': 'app',
        'build_dir': 'dist',
        'source_dir': 'src',
        'manifests': ['package.json', 'package-lock.json'],
        'supervisor_config': 'ecosystem.config.js',
        'env_template': '.env.example',
    },
    'artifact': {
        'output_dir': 'artifacts',
        'filename': 'release.tar.gz',
        'metadata_file': 'release-metadata.yaml',
    },
    'server': {
        'host_env': 'EC2_HOST',
        'user_env': 'EC2_USER',
        'ssh_key_env': 'EC2_SSH_KEY',
        'ssh_port': 22,
        'host_key_policy': 'accept-new',
        'connect_timeout': 15,
        'command_timeout': 300,
        'staging_path': '/tmp/release.tar.gz',
    },
    'release': {
        'target_dir': '/home/ubuntu/app',
        'backup_dir': '/home/ubuntu/backups',
        'log_dir': 'logs',
        'env_file': '.env',
        'default_port': 3000,
        'env_defaults': {},
        'extract_mode': 'overwrite',
    },
    'backups': {
        'keep': 5,
    },
    'lock': {
        'enabled': False,
        'ttl_seconds': 900,
    },
    'storage': {
        'backend': 'local',
    },
    'workflow': {
        'branch': 'main',
        'node_version': '20',
        'build_command': 'npm run build',
        'install_source': '.',
    },
}


def load_yaml(file_path):
    with open(file_path, 'r') as f:
        return yaml.safe_load(f)


def deep_merge(base, override):
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def default_config_path():
    root = Path(__file__).parent.parent.parent
    return root / "config" / "deployment-config.yaml"


def load_config(config_path=None):
    """
    Load configuration with optional local overrides.
    - Default: config/deployment-config.yaml (production mode)
    - DEPLOYMENT_ENV=local: merges <name>.local.yaml next to it
    Built-in defaults fill anything the file leaves out.
    """
    base_path = Path(config_path) if config_path else default_config_path()
    if not base_path.exists():
        raise ConfigError(f"Config file not found: {base_path}")

    try:
        base_config = load_yaml(base_path) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML syntax error in {base_path}: {e}")

    env = os.environ.get('DEPLOYMENT_ENV', '').strip()
    if env == 'local':
        override_path = base_path.with_name(f"{base_path.stem}.local.yaml")
        if override_path.exists():
            base_config = deep_merge(base_config, load_yaml(override_path) or {})

    return deep_merge(copy.deepcopy(DEFAULT_CONFIG), base_config)


def save_release_metadata(metadata, output_path):
    """Save release state for passing between pipeline stages."""
    Path(output_path).parent.mkdir(exist_ok=True, parents=True)
    with open(output_path, 'w') as f:
        yaml.dump(metadata, f, default_flow_style=False, sort_keys=False)
    print(f"Saved metadata: {output_path}")


def load_release_metadata(metadata_path):
    if not Path(metadata_path).exists():
        raise ConfigError(
            f"Release metadata not found: {metadata_path} (run the package phase first)"
        )
    return load_yaml(metadata_path)


def metadata_path(config, project_root='.'):
    artifact = config['artifact']
    return Path(project_root) / artifact['output_dir'] / artifact['metadata_file']


def content_label(now=None):
    """Commit SHA from CI when available, otherwise a build timestamp."""
    for var in ('GITHUB_SHA', 'CI_COMMIT_SHA'):
        sha = os.environ.get(var, '').strip()
        if sha:
            return sha[:12]
    return (now or datetime.now()).strftime('%Y%m%d-%H%M%S')


def sha256_file(path):
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b''):
            digest.update(chunk)
    return digest.hexdigest()


def remote_path(base, path):
    """Resolve `path` against a remote directory. Absolute paths win."""
    return posixpath.join(base, path)


def resolve_env(section, key):
    """Read a literal value or the env var named by `<key>_env`."""
    value = section.get(key)
    if value:
        return str(value)
    env_name = section.get(f'{key}_env')
    if env_name:
        return os.environ.get(env_name)
    return None
