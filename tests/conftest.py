"""Shared fixtures: a built Node.js project, a config pointing at tmp dirs, fakes."""

from __future__ import annotations

import copy
from pathlib import Path

import pytest
import yaml

from deploytools.deployment.utils import DEFAULT_CONFIG
from deploytools.executors.base import BaseExecutor

PROJECT_FILES = {
    "dist/index.js": 'console.log("v1");\n',
    "dist/assets/app.css": "body { margin: 0; }\n",
    "src/index.ts": 'console.log("v1");\n',
    "src/lib/util.ts": "export const answer = 42;\n",
    "package.json": '{"name": "node-app", "version": "1.0.0"}\n',
    "package-lock.json": '{"name": "node-app", "lockfileVersion": 3}\n',
    "ecosystem.config.js": 'module.exports = { apps: [{ name: "node-app", script: "dist/index.js" }] };\n',
}


def write_files(root: Path, files: dict[str, str]) -> Path:
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


class FakeSupervisor:
    """Records PM2 calls instead of running pm2."""

    def __init__(self, registered: bool = False) -> None:
        self.registered = registered
        self.calls: list[tuple] = []

    def describe(self, name):
        self.calls.append(("describe", name))
        return self.registered

    def start(self, config):
        self.calls.append(("start", config))
        self.registered = True

    def reload(self, config, refresh_env=True):
        self.calls.append(("reload", config, refresh_env))

    def save(self):
        self.calls.append(("save",))

    @property
    def actions(self) -> list[str]:
        return [call[0] for call in self.calls if call[0] in ("start", "reload")]


class RecordingExecutor(BaseExecutor):
    """Scripted executor: the first response whose key appears in the command wins.

    A response that is an exception is raised instead, like a dropped ssh connection.
    """

    def __init__(self, responses: dict[str, tuple[str, str, int] | Exception] | None = None) -> None:
        self.responses = responses or {}
        self.commands: list[str] = []
        self.inputs: list[str | None] = []
        self.uploads: list[tuple[str, str]] = []

    def run(self, command, input=None, timeout=None):
        self.commands.append(command)
        self.inputs.append(input)
        for needle, response in self.responses.items():
            if needle in command:
                if isinstance(response, Exception):
                    raise response
                return response
        return "", "", 0

    def upload(self, local_path, remote_path):
        self.uploads.append((local_path, remote_path))
        return remote_path


@pytest.fixture
def node_project(tmp_path: Path) -> Path:
    return write_files(tmp_path / "project", PROJECT_FILES)


@pytest.fixture
def config(tmp_path: Path) -> dict:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg["app"]["name"] = "node-app"
    cfg["server"].update(
        host="example.test",
        user="deploy",
        staging_path=str(tmp_path / "staging" / "release.tar.gz"),
    )
    cfg["release"].update(
        target_dir=str(tmp_path / "srv" / "node-app"),
        backup_dir=str(tmp_path / "srv" / "backups"),
    )
    return cfg


@pytest.fixture
def config_file(tmp_path: Path, config: dict) -> Path:
    path = tmp_path / "deployment-config.yaml"
    path.write_text(yaml.dump(config))
    return path


@pytest.fixture
def supervisor() -> FakeSupervisor:
    return FakeSupervisor()


@pytest.fixture
def fake_supervisor_class() -> type[FakeSupervisor]:
    return FakeSupervisor


@pytest.fixture
def recording_executor() -> type[RecordingExecutor]:
    return RecordingExecutor
