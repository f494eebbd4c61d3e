from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from resource_monitor.config import Settings
from resource_monitor.database import Base, make_session_factory
from resource_monitor.runner import CommandOutcome, CommandResult
from resource_monitor.store import SampleStore

DU_OUTPUT = "31041\t{path}\n"
DF_INODE_OUTPUT = (
    "Filesystem      Inodes  IUsed   IFree IUse% Mounted on\n"
    "/dev/sda1      6553600 412398 6141202    7% /\n"
)
DF_SPACE_OUTPUT = (
    "Filesystem     1M-blocks  Used Available Use% Mounted on\n"
    "/dev/sda1         100664 41208     54321  44% /\n"
)


def ok(stdout: str) -> CommandResult:
    return CommandResult(args=(), outcome=CommandOutcome.OK, returncode=0, stdout=stdout)


class FakeRunner:
    """Records every command and answers from a table keyed by argv prefix."""

    def __init__(self, responses: dict[tuple[str, ...], CommandResult] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[tuple[str, ...], float]] = []

    def run(self, args: Any, timeout: float) -> CommandResult:
        args = tuple(args)
        self.calls.append((args, timeout))
        for prefix, result in self.responses.items():
            if args[: len(prefix)] == prefix:
                return result
        raise AssertionError(f"unexpected command {args}")

    def commands(self) -> list[tuple[str, ...]]:
        return [args for args, _ in self.calls]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner(
        {
            ("find",): ok("root\nroot/a\nroot/b\n"),
            ("du", "-sm"): ok(DU_OUTPUT.format(path="root")),
            ("df", "-i"): ok(DF_INODE_OUTPUT),
            ("df", "-m"): ok(DF_SPACE_OUTPUT),
        }
    )


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "base_path": str(tmp_path),
            "available_inode": None,
            "available_space": None,
            "file_count_strategy": "find",
            "database_url": "sqlite://",
            "api_key": "secret",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def store() -> SampleStore:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return SampleStore(make_session_factory(engine))
