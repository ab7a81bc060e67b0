#!/usr/bin/env python3
"""
Release Orchestrator
Packages a Node.js build, ships it to the target host and makes it live
"""

import argparse
import sys
from pathlib import Path

from .utils import (
    load_config, save_release_metadata, load_release_metadata, metadata_path
)
from .errors import ConfigError, DeploymentError
from .packager import create_artifact
from .transporter import Transporter
from .applier import ReleaseApplier
from .backup import BackupRotator, backup_members
from .supervisor import PM2Supervisor
from . import rollback
from ..config.validation import validate_config
from ..config.workflow import generate_workflow
from ..executors import get_executor
from ..storage import get_storage_backend


def _print_phase(phase_num, phase_name):
    """Helper to print phase headers."""
    print(f"\n{'='*60}")
    if phase_num:
        print(f"PHASE {phase_num}: {phase_name}")
    else:
        print(f"{phase_name}")
    print(f"{'='*60}")


def load_valid_config(config_path=None):
    config = load_config(config_path)
    is_valid, errors = validate_config(config)
    if not is_valid:
        raise ConfigError("Invalid deployment config:\n" + "\n".join(f"  - {e}" for e in errors))
    return config


def package_command(config, project_root='.', label=None):
    """PHASE 1: Build the artifact and record its metadata."""
    _print_phase(1, "PACKAGE")
    project_root = Path(project_root)
    artifact = config['artifact']
    output_path = project_root / artifact['output_dir'] / artifact['filename']

    metadata = create_artifact(project_root, config['app'], output_path, label)
    save_release_metadata(metadata, metadata_path(config, project_root))
    return metadata


def transfer_command(config, executor, project_root='.'):
    """PHASE 2: Copy the artifact to the staging path on the host."""
    _print_phase(2, "TRANSFER")
    meta_file = metadata_path(config, project_root)
    metadata = load_release_metadata(meta_file)

    staged = Transporter(executor).transfer(metadata['artifact_path'], config['server']['staging_path'])
    metadata['staged_path'] = staged
    save_release_metadata(metadata, meta_file)
    return metadata


def publish_command(config, project_root='.'):
    """PHASE 3: Retain the artifact and its metadata in the storage backend."""
    _print_phase(3, "PUBLISH")
    meta_file = metadata_path(config, project_root)
    metadata = load_release_metadata(meta_file)
    storage = get_storage_backend(config)

    artifact_path = Path(metadata['artifact_path'])
    location = storage.upload_file(artifact_path, storage.artifact_key(metadata, artifact_path.name))
    storage.upload_file(meta_file, storage.artifact_key(metadata, meta_file.name))
    print(f"[OK] Published {metadata['label']}: {location}")
    return location


def apply_command(config, executor, project_root='.', artifact=None):
    """PHASE 4: Make the staged artifact the live release."""
    _print_phase(4, "APPLY")
    if artifact is None:
        metadata = load_release_metadata(metadata_path(config, project_root))
        artifact = metadata.get('staged_path')
        if not artifact:
            raise ConfigError("No staged artifact recorded (run the transfer phase or pass --artifact)")

    target_dir = config['release']['target_dir']
    supervisor = PM2Supervisor(executor, target_dir)
    result = ReleaseApplier(executor, supervisor, config).apply(str(artifact), target_dir)

    if result.backup.is_degraded():
        print(f"WARNING: deployed without a clean backup: {result.backup.reason}")
    return result


def rollback_command(config, executor, backup_name=None):
    _print_phase(None, "ROLLBACK")
    release = config['release']
    supervisor = PM2Supervisor(executor, release['target_dir'])
    rotator = BackupRotator(executor, backup_members(config), config['backups']['keep'])
    return rollback.rollback(executor, supervisor, rotator, config, backup_name)


def validate_command(config_path=None):
    """Validate config and print the result."""
    _print_phase(None, "VALIDATING DEPLOYMENT CONFIG")
    config = load_config(config_path)
    is_valid, errors = validate_config(config)

    if not is_valid:
        print("[FAILED] Config validation failed")
        for error in errors:
            print(f"  - {error}")
        raise ConfigError(f"{len(errors)} config error(s)")

    print("[OK] Config is valid")
    print(f"  - App: {config['app']['name']}")
    print(f"  - Target: {config['release']['target_dir']}")
    print(f"  - Host key policy: {config['server']['host_key_policy']}")
    return config


def deploy_command(config, project_root='.', local=False, label=None):
    """One-shot deployment: package -> transfer -> publish -> apply."""
    _print_phase(None, f"DEPLOYMENT ({config['app']['name']})")

    package_command(config, project_root, label)
    executor = get_executor(config, local=local)
    transfer_command(config, executor, project_root)
    if config['storage'].get('backend', 'local') != 'local':
        publish_command(config, project_root)
    result = apply_command(config, executor, project_root)

    print("=" * 60)
    print(f"DEPLOYMENT COMPLETE ({result.action})")
    print("=" * 60)
    return result


def generate_workflow_command(config, config_path, output=None):
    content = generate_workflow(config, config_path or 'config/deployment-config.yaml')
    if output:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        Path(output).write_text(content)
        print(f"Wrote workflow: {output}")
    else:
        print(content)
    return content


def build_parser():
    parser = argparse.ArgumentParser(
        prog='deploytools',
        description='Release Orchestrator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full deployment (what the CI job runs)
  deploytools deploy

  # CI/CD pipeline stage commands
  deploytools package
  deploytools transfer
  deploytools apply

  # Apply on this machine instead of over SSH
  deploytools apply --local --artifact artifacts/release.tar.gz

  # Manual rollback to the newest backup (or a named one)
  deploytools rollback --backup backup-20260101-120000.tar.gz

  # Write the GitHub Actions workflow
  deploytools generate-workflow --output .github/workflows/deploy.yml
        """
    )
    parser.add_argument('command', choices=[
        'validate', 'package', 'transfer', 'publish', 'apply', 'deploy', 'rollback', 'generate-workflow'
    ], help='Deployment command')
    parser.add_argument('--config', help='Config file (default: config/deployment-config.yaml)')
    parser.add_argument('--project-root', default='.', help='Directory holding the build output')
    parser.add_argument('--label', help='Content label for the artifact (default: commit SHA or timestamp)')
    parser.add_argument('--artifact', help='Staged artifact path for apply')
    parser.add_argument('--backup', help='Backup file name for rollback')
    parser.add_argument('--local', action='store_true', help='Run host operations on this machine')
    parser.add_argument('--output', help='Output file for generate-workflow')
    return parser


def run(args):
    if args.command == 'validate':
        validate_command(args.config)
        return

    config = load_valid_config(args.config)

    if args.command == 'package':
        package_command(config, args.project_root, args.label)
    elif args.command == 'transfer':
        transfer_command(config, get_executor(config, local=args.local), args.project_root)
    elif args.command == 'publish':
        publish_command(config, args.project_root)
    elif args.command == 'apply':
        apply_command(config, get_executor(config, local=args.local), args.project_root, args.artifact)
    elif args.command == 'deploy':
        deploy_command(config, args.project_root, args.local, args.label)
    elif args.command == 'rollback':
        rollback_command(config, get_executor(config, local=args.local), args.backup)
    elif args.command == 'generate-workflow':
        generate_workflow_command(config, args.config, args.output)


def main(argv=None):
    """Main entry point - parse command line and run deployment."""
    args = build_parser().parse_args(argv)

    try:
        run(args)
    except DeploymentError as e:
        print(f"\nERROR: {e.phase.upper()} phase failed: {e}", file=sys.stderr)
        step = getattr(e, 'step', None)
        if step:
            print(f"Failed step: {step} (target may be partially updated)", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
