"""Tests for deploytools.deployment.backup."""

from __future__ import annotations

import tarfile
from datetime import datetime, timedelta
from pathlib import Path

from deploytools.deployment.backup import BackupRotator, backup_members, sort_backups
from deploytools.deployment.errors import TransportError
from deploytools.deployment.outcome import Degraded, Ok
from deploytools.executors import LocalExecutor

from conftest import PROJECT_FILES, write_files


class Clock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(minutes=1)
        return current


def _live_release(config: dict) -> Path:
    target = Path(config["release"]["target_dir"])
    write_files(target, PROJECT_FILES)
    (target / ".env").write_text("NODE_ENV=production\nPORT=4000\n")
    return target


class TestSortBackups:
    def test_newest_first(self) -> None:
        names = [
            "backup-20260101-000000.tar.gz",
            "backup-20260301-000000.tar.gz",
            "backup-20260201-000000.tar.gz",
        ]
        assert sort_backups(names) == [
            "backup-20260301-000000.tar.gz",
            "backup-20260201-000000.tar.gz",
            "backup-20260101-000000.tar.gz",
        ]

    def test_identical_timestamps_use_label_order(self) -> None:
        names = [
            "backup-20260101-000000.tar.gz",
            "backup-20250101-000000.tar.gz",
            "backup-20260101-000000_001.tar.gz",
        ]
        assert sort_backups(names) == [
            "backup-20260101-000000_001.tar.gz",
            "backup-20260101-000000.tar.gz",
            "backup-20250101-000000.tar.gz",
        ]

    def test_same_second_suffixes_keep_creation_order(self) -> None:
        names = [f"backup-20260101-000000_{n:03d}.tar.gz" for n in (2, 10, 9)]
        assert sort_backups(names)[0] == "backup-20260101-000000_010.tar.gz"
        assert sort_backups(names)[-1] == "backup-20260101-000000_002.tar.gz"

    def test_ignores_unrelated_files(self) -> None:
        assert sort_backups(["notes.txt", "backup-latest.tar.gz"]) == []


class TestSnapshot:
    def test_backup_contains_release_files(self, config: dict) -> None:
        target = _live_release(config)
        rotator = BackupRotator(LocalExecutor(), backup_members(config), clock=lambda: datetime(2026, 10, 18, 12, 0, 0))

        outcome = rotator.snapshot(str(target), config["release"]["backup_dir"])

        assert isinstance(outcome, Ok)
        assert outcome.value.endswith("backup-20261018-120000.tar.gz")
        with tarfile.open(outcome.value, "r:gz") as tar:
            names = tar.getnames()
        assert {"dist/index.js", "package.json", "ecosystem.config.js", ".env"} <= set(names)
        assert not any(name.startswith("src") for name in names)

    def test_missing_files_are_skipped(self, config: dict) -> None:
        target = Path(config["release"]["target_dir"])
        write_files(target, {"dist/index.js": "x", "package.json": "{}"})
        rotator = BackupRotator(LocalExecutor(), backup_members(config))

        outcome = rotator.snapshot(str(target), config["release"]["backup_dir"])

        assert isinstance(outcome, Ok)
        with tarfile.open(outcome.value, "r:gz") as tar:
            assert set(tar.getnames()) == {"dist", "dist/index.js", "package.json"}

    def test_nothing_to_back_up_is_degraded(self, config: dict, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()
        rotator = BackupRotator(LocalExecutor(), backup_members(config))

        outcome = rotator.snapshot(str(empty), config["release"]["backup_dir"])

        assert isinstance(outcome, Degraded)
        assert "Nothing to back up" in outcome.reason

    def test_never_retains_more_than_keep(self, config: dict) -> None:
        target = _live_release(config)
        backup_dir = Path(config["release"]["backup_dir"])
        rotator = BackupRotator(LocalExecutor(), backup_members(config), keep=5, clock=Clock(datetime(2026, 1, 1)))

        created = []
        for _ in range(9):
            outcome = rotator.snapshot(str(target), str(backup_dir))
            created.append(Path(outcome.value).name)
            assert len(list(backup_dir.iterdir())) <= 5

        assert sorted(p.name for p in backup_dir.iterdir()) == sorted(created[-5:])

    def test_same_second_snapshots_do_not_collide(self, config: dict) -> None:
        target = _live_release(config)
        backup_dir = Path(config["release"]["backup_dir"])
        rotator = BackupRotator(LocalExecutor(), backup_members(config), keep=2, clock=lambda: datetime(2026, 1, 1))

        for _ in range(3):
            rotator.snapshot(str(target), str(backup_dir))

        assert sorted(p.name for p in backup_dir.iterdir()) == [
            "backup-20260101-000000_001.tar.gz",
            "backup-20260101-000000_002.tar.gz",
        ]

    def test_unrelated_files_survive_pruning(self, config: dict) -> None:
        target = _live_release(config)
        backup_dir = Path(config["release"]["backup_dir"])
        backup_dir.mkdir(parents=True)
        (backup_dir / "README").write_text("keep me")
        rotator = BackupRotator(LocalExecutor(), backup_members(config), keep=1, clock=Clock(datetime(2026, 1, 1)))

        rotator.snapshot(str(target), str(backup_dir))
        rotator.snapshot(str(target), str(backup_dir))

        assert (backup_dir / "README").exists()
        assert len(sort_backups(p.name for p in backup_dir.iterdir())) == 1

    def test_failed_deletion_is_degraded_not_raised(self, config: dict, recording_executor) -> None:
        old = "\n".join(f"backup-2026010{i}-000000.tar.gz" for i in range(1, 8))
        executor = recording_executor({
            "ls -1A": (old + "\n", "", 0),
            "rm -f": ("", "rm: Permission denied", 1),
        })
        rotator = BackupRotator(executor, backup_members(config), keep=5, clock=lambda: datetime(2026, 10, 18))

        outcome = rotator.snapshot("/srv/app", "/srv/backups")

        assert isinstance(outcome, Degraded)
        assert outcome.value == "/srv/backups/backup-20261018-000000.tar.gz"
        assert "backup-20260101-000000.tar.gz" in outcome.reason
        assert "backup-20260102-000000.tar.gz" in outcome.reason

    def test_tar_failure_is_degraded(self, config: dict, recording_executor) -> None:
        executor = recording_executor({"tar -czf": ("", "tar: disk full", 2)})
        rotator = BackupRotator(executor, backup_members(config))

        outcome = rotator.snapshot("/srv/app", "/srv/backups")

        assert isinstance(outcome, Degraded)
        assert "disk full" in outcome.reason

    def test_connection_lost_during_tar_is_degraded(self, config: dict, recording_executor) -> None:
        executor = recording_executor({"tar -czf": TransportError("ssh to host timed out after 300s")})
        rotator = BackupRotator(executor, backup_members(config))

        outcome = rotator.snapshot("/srv/app", "/srv/backups")

        assert isinstance(outcome, Degraded)
        assert "timed out" in outcome.reason

    def test_connection_lost_during_cleanup_keeps_new_backup(self, config: dict, recording_executor) -> None:
        old = "\n".join(f"backup-2026010{i}-000000.tar.gz" for i in range(1, 8))
        executor = recording_executor({
            "ls -1A": (old + "\n", "", 0),
            "rm -f": TransportError("ssh to host failed: Connection reset by peer"),
        })
        rotator = BackupRotator(executor, backup_members(config), keep=5, clock=lambda: datetime(2026, 10, 18))

        outcome = rotator.snapshot("/srv/app", "/srv/backups")

        assert isinstance(outcome, Degraded)
        assert outcome.value == "/srv/backups/backup-20261018-000000.tar.gz"
        assert "Connection reset" in outcome.reason
