#!/usr/bin/env python3
"""
Packager: bundles build output and release inputs into one tar.gz artifact.

Artifact layout mirrors the project tree:
    dist/  src/  package.json  package-lock.json  ecosystem.config.js  [.env.example]
"""

import os
import tarfile
from datetime import datetime
from pathlib import Path

from .errors import PackagingError
from .utils import content_label, sha256_file


def collect_inputs(app_config):
    """Return (relative path, required) pairs in artifact order."""
    inputs = [
        (app_config['build_dir'], True),
        (app_config['source_dir'], True),
    ]
    inputs += [(manifest, True) for manifest in app_config.get('manifests', [])]
    inputs.append((app_config['supervisor_config'], True))
    if app_config.get('env_template'):
        inputs.append((app_config['env_template'], False))
    return inputs


def _check_inputs(project_root, app_config):
    build_dir = project_root / app_config['build_dir']
    if not build_dir.is_dir():
        raise PackagingError(
            f"Build output not found: {build_dir} (did the build step run?)"
        )

    members = []
    missing = []
    for rel_path, required in collect_inputs(app_config):
        if (project_root / rel_path).exists():
            members.append(rel_path)
        elif required:
            missing.append(rel_path)

    if missing:
        raise PackagingError(f"Missing build inputs: {', '.join(missing)}")
    return members


def _add_tree(tar, root, rel_path):
    """Add a file or directory tree in sorted order so artifacts are reproducible."""
    tar.add(root / rel_path, arcname=rel_path, recursive=False)
    source = root / rel_path
    if not source.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(source):
        dirnames.sort()
        for name in dirnames + sorted(filenames):
            full = Path(dirpath) / name
            tar.add(full, arcname=full.relative_to(root).as_posix(), recursive=False)


def create_artifact(project_root, app_config, output_path, label=None):
    """
    Create the release artifact.

    Args:
        project_root: Directory holding the build output and manifests
        app_config: The `app` section of the deployment config
        output_path: Where to write the tar.gz (overwritten if present)
        label: Content label; defaults to commit SHA or timestamp

    Returns:
        Release metadata dict
    """
    project_root = Path(project_root)
    output_path = Path(output_path)
    label = label or content_label()

    members = _check_inputs(project_root, app_config)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    print(f"Creating artifact: {output_path.name} (label {label})")
    try:
        with tarfile.open(output_path, 'w:gz') as tar:
            for rel_path in members:
                _add_tree(tar, project_root, rel_path)
    except OSError as e:
        raise PackagingError(f"Could not write artifact {output_path}: {e}")

    metadata = {
        'app': app_config['name'],
        'label': label,
        'artifact_path': str(output_path),
        'sha256': sha256_file(output_path),
        'size': output_path.stat().st_size,
        'members': members,
        'created_at': datetime.now().isoformat(),
    }
    print(f"[OK] Artifact created: {output_path} ({metadata['size']} bytes)")
    return metadata
