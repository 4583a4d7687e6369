from __future__ import annotations

import pathlib
import shutil

from loguru import logger

from runpack.core.errors import RuntimeLayoutError
from runpack.core.platform import VENDOR_PREFIX


# macOS builds ship the runtime inside an application bundle
BUNDLE_HOME = pathlib.PurePosixPath("Contents", "Home")


def find_runtime_top(extract_dir: pathlib.Path, vendor_prefix: str = VENDOR_PREFIX) -> pathlib.Path:
    """
    Find the single top-level directory produced by the vendor archive

    :param extract_dir: directory the archive was extracted to
    :type extract_dir: pathlib.Path
    :param vendor_prefix: vendor directory name prefix
    :type vendor_prefix: str
    :raises RuntimeLayoutError: no or several matching directories
    :return: top-level runtime directory
    :rtype: pathlib.Path
    """
    candidates = sorted(
        path for path in extract_dir.iterdir()
        if path.is_dir() and path.name.startswith(vendor_prefix)
    )

    if not candidates:
        raise RuntimeLayoutError(f"no \"{vendor_prefix}*\" directory found in {extract_dir}")
    if len(candidates) > 1:
        names = ", ".join(path.name for path in candidates)
        raise RuntimeLayoutError(f"ambiguous runtime directories in {extract_dir}: {names}")

    return candidates[0]


def normalize(
    extract_dir: pathlib.Path,
    runtime_dir: pathlib.Path,
    vendor_prefix: str = VENDOR_PREFIX,
) -> pathlib.Path:
    """
    Move the canonical runtime root (the one holding `bin/`, `lib/`, ...)
    from the extracted tree to `runtime_dir`, unwrapping bundle layouts

    :param extract_dir: directory the archive was extracted to
    :type extract_dir: pathlib.Path
    :param runtime_dir: canonical runtime location, must not exist
    :type runtime_dir: pathlib.Path
    :param vendor_prefix: vendor directory name prefix
    :type vendor_prefix: str
    :raises RuntimeLayoutError:
    :return: runtime directory
    :rtype: pathlib.Path
    """
    if runtime_dir.exists():
        raise RuntimeLayoutError(f"{runtime_dir} already exists, refusing to overwrite")

    top = find_runtime_top(extract_dir, vendor_prefix)
    nested = top.joinpath(BUNDLE_HOME)
    bundled = nested.is_dir()
    root = nested if bundled else top

    if bundled:
        logger.debug(f"unwrapping bundle layout {top.name}/{BUNDLE_HOME}")

    runtime_dir.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(root, runtime_dir)

    # the rest of the bundle (Contents/MacOS, Info.plist, ...) is not needed
    if top.exists():
        shutil.rmtree(top)

    return runtime_dir
