import subprocess
from typing import TypeVar

from supervisorlib.plumbing.common import Collect, Result, State, Unset


T = TypeVar("T")


def default() -> Result[Unset]:
    return Result()


def unchanged() -> Result[Unset]:
    return Result(State.unchanged)


def success() -> Result[Unset]:
    return Result(State.success)


def success_value(value: T) -> Result[T]:
    return Result(State.success, value)


def created() -> Result[Unset]:
    return Result(State.created)


@Result.collect
def collect_unchanged() -> Collect[None]:
    yield unchanged()


@Result.collect
def collect_pair() -> Collect[None]:
    yield unchanged()
    yield success()


@Result.collect
def collect_all() -> Collect[str]:
    yield unchanged()
    yield success()
    result = yield from success_value("test")
    yield created()
    return result.value


def completed(stdout: str = "", returncode: int = 0) -> "subprocess.CompletedProcess[bytes]":
    """
    Fake the outcome of a `command` call with captured output.
    """
    return subprocess.CompletedProcess([], returncode, stdout.encode("utf-8"))
