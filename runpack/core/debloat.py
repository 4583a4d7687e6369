from __future__ import annotations

import pathlib
import shutil

from loguru import logger


DEBLOAT_TARGETS: tuple[str, ...] = (
    "lib/src.zip",
    "lib/missioncontrol",
    "lib/visualvm",
    "lib/plugin.jar",
    "jmods",
    "lib/jfr",
    "lib/oblique-fonts",
    "lib/javafx",
    "release",
    "bin/jaotc",
    "lib/installer",
    "lib/classlist",
    "lib/dt.jar",
)


def debloat(runtime_dir: pathlib.Path, targets: tuple[str, ...] = DEBLOAT_TARGETS) -> list[str]:
    """
    Remove the listed relative paths from a runtime root, missing ones are ignored

    :param runtime_dir: canonical runtime root
    :type runtime_dir: pathlib.Path
    :param targets: relative paths to remove
    :type targets: tuple[str, ...]
    :raises ValueError: a target is absolute or leaves the runtime root
    :return: removed relative paths
    :rtype: list[str]
    """
    root = runtime_dir.resolve()
    removed = []

    for relative in targets:
        if pathlib.PurePosixPath(relative).is_absolute() or ".." in pathlib.PurePosixPath(relative).parts:
            raise ValueError(f"debloat target must be relative to the runtime root: \"{relative}\"")

        path = root.joinpath(relative)

        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)
        else:
            continue

        logger.debug(f"removed {relative} from {runtime_dir.name}")
        removed.append(relative)

    return removed
