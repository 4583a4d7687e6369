from __future__ import annotations

import functools
import http.server
import pathlib
import threading
from typing import Iterator

import pytest

from runpack.config.utils import Storage
from runpack.core.platform import CATALOG, Platform
from tests.utils import RUNTIME_VERSION, make_tar_gz, make_zip, write_runtime


@pytest.fixture(autouse=True)
def storage() -> Iterator[Storage]:
    pool = Storage().pool
    pool.clear()
    yield Storage()
    pool.clear()


@pytest.fixture
def runtime_archives(tmp_path: pathlib.Path) -> dict[str, pathlib.Path]:
    """Archives with the same runtime content in every supported shape"""
    out = tmp_path.joinpath("archives")
    out.mkdir()

    flat = write_runtime(tmp_path.joinpath("flat"))
    bundled = write_runtime(tmp_path.joinpath("bundled"), bundled=True)

    return {
        "zip": make_zip(flat, out.joinpath("flat.zip")),
        "tar": make_tar_gz(flat, out.joinpath("flat.tar.gz")),
        "bundle": make_tar_gz(bundled, out.joinpath("bundle.tar.gz")),
    }


class RecordingHandler(http.server.SimpleHTTPRequestHandler):
    requests: list[tuple[str, str]]

    def do_HEAD(self) -> None:
        self.requests.append(("HEAD", self.path))
        super().do_HEAD()

    def do_GET(self) -> None:
        self.requests.append(("GET", self.path))
        super().do_GET()

    def log_message(self, format: str, *args: object) -> None:
        pass


class FakeRemote:
    def __init__(self, root: pathlib.Path, server: http.server.ThreadingHTTPServer, requests: list) -> None:
        self.root = root
        self.server = server
        self.requests = requests

    @property
    def base_url(self) -> str:
        host, port = self.server.server_address[:2]
        return f"http://{host}:{port}/jdk-{{version}}"

    def publish(self, platform: Platform, archive: pathlib.Path) -> pathlib.Path:
        target = CATALOG[platform]
        dest = self.root.joinpath(f"jdk-{RUNTIME_VERSION}", target.file_name(RUNTIME_VERSION))
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(archive.read_bytes())
        return dest

    def count(self, method: str) -> int:
        return sum(1 for m, _ in self.requests if m == method)


@pytest.fixture
def fake_remote(tmp_path: pathlib.Path) -> Iterator[FakeRemote]:
    root = tmp_path.joinpath("remote")
    root.mkdir()
    recorded: list[tuple[str, str]] = []

    handler = type("Handler", (RecordingHandler,), {"requests": recorded})
    server = http.server.ThreadingHTTPServer(
        ("127.0.0.1", 0), functools.partial(handler, directory=str(root)),
    )
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield FakeRemote(root, server, recorded)

    server.shutdown()
    server.server_close()


@pytest.fixture
def artifact(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path.joinpath("build", "app-1.0.0.jar")
    path.parent.mkdir(parents=True)
    path.write_bytes(b"PK fat jar")
    return path
