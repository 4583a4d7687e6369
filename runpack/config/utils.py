from __future__ import annotations

import subprocess
from dataclasses import asdict, dataclass
from typing import Generic, Self, TypeVar


_T = TypeVar("_T")


class SingletonMeta(type, Generic[_T]):
    _instances: dict[SingletonMeta[_T], _T] = {}

    def __call__(cls) -> _T:
        if cls not in cls._instances:
            instance = super().__call__()
            cls._instances[cls] = instance
        return cls._instances[cls]


class Storage(metaclass=SingletonMeta):
    def __init__(self) -> None:
        self.pool: dict[str, str] = {}


@dataclass
class ProcOptions:
    stdout: int = subprocess.PIPE
    stderr: int = subprocess.PIPE


class CmdBuilder:
    """
    Shell command runner used for `shell` defines and the application build
    """
    __slots__ = ("_cmd", "_proc_opts", "_cwd")

    def __init__(self, cmd: str) -> None:
        self._cmd = cmd
        self._proc_opts = ProcOptions()
        self._cwd: str | None = None

    def stderr(self, fd: int = subprocess.PIPE) -> Self:
        self._proc_opts.stderr = fd
        return self

    def cwd(self, path: str | None) -> Self:
        self._cwd = path
        return self

    def build(self) -> subprocess.Popen:
        return subprocess.Popen(self._cmd, **asdict(self._proc_opts), cwd=self._cwd, shell=True)
