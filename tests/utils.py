from __future__ import annotations

import pathlib
import tarfile
import zipfile


RUNTIME_VERSION = "21.0.2"
TOP_DIR = "graalvm-community-openjdk-21.0.2+13.1"

RUNTIME_FILES = {
    "bin/java": b"#!/bin/sh\necho java\n",
    "bin/jaotc": b"aot",
    "lib/modules": b"modules" * 64,
    "lib/src.zip": b"sources" * 64,
    "lib/jfr/default.jfc": b"<jfc/>",
    "lib/missioncontrol/mc.jar": b"mc",
    "lib/security/cacerts": b"certs",
    "jmods/java.base.jmod": b"jmod",
    "conf/security/java.security": b"policy",
    "release": b"JAVA_VERSION=21.0.2\n",
}

# what stays after debloating RUNTIME_FILES
KEPT_FILES = {"bin/java", "lib/modules", "lib/security/cacerts", "conf/security/java.security"}


def write_runtime(root: pathlib.Path, bundled: bool = False) -> pathlib.Path:
    """
    Lay out a runtime tree the way vendor archives do, `bundled` nests it
    the macOS way under Contents/Home
    """
    top = root.joinpath(TOP_DIR)
    home = top.joinpath("Contents", "Home") if bundled else top

    for relative, content in RUNTIME_FILES.items():
        path = home.joinpath(relative)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    home.joinpath("bin", "java").chmod(0o755)

    if bundled:
        top.joinpath("Contents", "MacOS").mkdir(parents=True)
        top.joinpath("Contents", "MacOS", "libjli.dylib").write_bytes(b"jli")
        top.joinpath("Contents", "Info.plist").write_text("<plist/>")

    return top


def make_zip(source: pathlib.Path, archive: pathlib.Path) -> pathlib.Path:
    with zipfile.ZipFile(archive, "w") as zf:
        for path in sorted(source.rglob("*")):
            zf.write(path, arcname=path.relative_to(source.parent).as_posix())
    return archive


def make_tar_gz(source: pathlib.Path, archive: pathlib.Path) -> pathlib.Path:
    with tarfile.open(archive, "w:gz") as tar:
        tar.add(source, arcname=source.name)
    return archive


def tree(root: pathlib.Path) -> dict[str, bytes]:
    """Map of relative file path to content"""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }
