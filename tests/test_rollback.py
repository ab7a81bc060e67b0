"""Tests for deploytools.deployment.rollback."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from deploytools.deployment import rollback
from deploytools.deployment.applier import ReleaseApplier
from deploytools.deployment.backup import BackupRotator, backup_members
from deploytools.deployment.errors import ApplyError
from deploytools.deployment.packager import create_artifact
from deploytools.executors import LocalExecutor


@pytest.fixture
def rotator(config: dict) -> BackupRotator:
    return BackupRotator(LocalExecutor(), backup_members(config), clock=lambda: datetime(2026, 10, 18, 12, 0, 0))


def _deploy_two_versions(config, supervisor, rotator, node_project, tmp_path):
    v1 = tmp_path / "v1.tar.gz"
    create_artifact(node_project, config["app"], v1, label="v1")
    (node_project / "dist" / "index.js").write_text('console.log("v2");\n')
    v2 = tmp_path / "v2.tar.gz"
    create_artifact(node_project, config["app"], v2, label="v2")

    applier = ReleaseApplier(LocalExecutor(), supervisor, config, rotator=rotator)
    applier.apply(str(v1))
    applier.apply(str(v2))


class TestRollback:
    def test_restores_newest_backup(self, config, supervisor, rotator, node_project, tmp_path) -> None:
        _deploy_two_versions(config, supervisor, rotator, node_project, tmp_path)

        name = rollback.rollback(LocalExecutor(), supervisor, rotator, config)

        target = Path(config["release"]["target_dir"])
        assert name == "backup-20261018-120000.tar.gz"
        assert (target / "dist" / "index.js").read_text() == 'console.log("v1");\n'
        assert supervisor.actions == ["start", "reload", "reload"]
        assert supervisor.calls[-1] == ("save",)

    def test_named_backup_must_exist(self, config, supervisor, rotator, node_project, tmp_path) -> None:
        _deploy_two_versions(config, supervisor, rotator, node_project, tmp_path)

        with pytest.raises(ApplyError, match="not found") as excinfo:
            rollback.rollback(LocalExecutor(), supervisor, rotator, config, "backup-20200101-000000.tar.gz")

        assert excinfo.value.phase == "rollback"

    def test_no_backups(self, config, supervisor, rotator) -> None:
        with pytest.raises(ApplyError, match="No backups"):
            rollback.rollback(LocalExecutor(), supervisor, rotator, config)

        assert supervisor.calls == []

    def test_corrupt_backup_is_fatal(self, config, supervisor, rotator) -> None:
        backup_dir = Path(config["release"]["backup_dir"])
        backup_dir.mkdir(parents=True)
        (backup_dir / "backup-20260101-000000.tar.gz").write_bytes(b"not a tarball")

        with pytest.raises(ApplyError) as excinfo:
            rollback.rollback(LocalExecutor(), supervisor, rotator, config)

        assert excinfo.value.step == "restore"
        assert supervisor.calls == []
