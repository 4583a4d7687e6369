from __future__ import annotations

import os
import pathlib
import shutil
import tarfile
import typing
import zipfile

from loguru import logger

from runpack.core.deadline import Deadline
from runpack.core.errors import ExtractionError, UnsupportedFormatError
from runpack.core.platform import ArchiveFormat


Extractor: typing.TypeAlias = typing.Callable[[pathlib.Path, pathlib.Path, Deadline | None], int]


def _entry_path(dest: pathlib.Path, name: str) -> pathlib.Path:
    """
    Map an archive entry name onto the destination directory

    :raises ExtractionError: entry escapes the destination
    """
    path = dest.joinpath(name).resolve()

    if pathlib.PurePosixPath(name).is_absolute() or not path.is_relative_to(dest.resolve()):
        raise ExtractionError(f"archive entry \"{name}\" points outside of {dest}")

    return path


def _write_file(path: pathlib.Path, source: typing.IO[bytes], mode: int | None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "wb") as out:
        shutil.copyfileobj(source, out)

    if mode:
        path.chmod(mode)


def _extract_zip(archive: pathlib.Path, dest: pathlib.Path, deadline: Deadline | None) -> int:
    count = 0

    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            if deadline is not None:
                deadline.check()

            path = _entry_path(dest, info.filename)

            if info.is_dir():
                path.mkdir(parents=True, exist_ok=True)
                continue

            # upper 16 bits hold st_mode for archives made on unix
            mode = (info.external_attr >> 16) & 0o777 if info.create_system == 3 else None

            with zf.open(info) as source:
                _write_file(path, source, mode)

            count += 1

    return count


def _extract_tar_gzip(archive: pathlib.Path, dest: pathlib.Path, deadline: Deadline | None) -> int:
    count = 0

    with tarfile.open(archive, "r:gz") as tar:
        for member in tar:
            if deadline is not None:
                deadline.check()

            path = _entry_path(dest, member.name)

            if member.isdir():
                path.mkdir(parents=True, exist_ok=True)
            elif member.issym():
                link_target = path.parent.joinpath(member.linkname).resolve()
                if not link_target.is_relative_to(dest.resolve()):
                    raise ExtractionError(f"symlink \"{member.name}\" points outside of {dest}")
                path.parent.mkdir(parents=True, exist_ok=True)
                path.unlink(missing_ok=True)
                os.symlink(member.linkname, path)
            elif member.islnk():
                source_path = _entry_path(dest, member.linkname)
                path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source_path, path)
                count += 1
            elif member.isfile():
                source = tar.extractfile(member)
                if source is None:
                    raise ExtractionError(f"cannot read \"{member.name}\" from {archive}")
                with source:
                    _write_file(path, source, member.mode & 0o777)
                count += 1
            else:
                logger.debug(f"skipping special entry \"{member.name}\" in {archive.name}")

    return count


EXTRACTORS: dict[ArchiveFormat, Extractor] = {
    ArchiveFormat.ZIP: _extract_zip,
    ArchiveFormat.TAR_GZIP: _extract_tar_gzip,
}


def extract(
    archive: pathlib.Path,
    dest: pathlib.Path,
    fmt: ArchiveFormat | str,
    deadline: Deadline | None = None,
) -> int:
    """
    Materialize the archive tree under `dest`, entries are processed in archive order

    :param archive: local archive file
    :type archive: pathlib.Path
    :param dest: destination directory (created if missing)
    :type dest: pathlib.Path
    :param fmt: declared archive format
    :type fmt: ArchiveFormat | str
    :param deadline: target time budget, checked between entries
    :type deadline: Deadline | None
    :raises UnsupportedFormatError: no extractor for the format
    :raises ExtractionError: corrupted archive or unsafe entry
    :return: number of extracted files
    :rtype: int
    """
    try:
        extractor = EXTRACTORS[ArchiveFormat(fmt)]
    except (KeyError, ValueError):
        raise UnsupportedFormatError(f"unsupported archive format: \"{fmt}\"")

    dest.mkdir(parents=True, exist_ok=True)

    try:
        return extractor(archive, dest, deadline)
    except (zipfile.BadZipFile, tarfile.TarError, EOFError, OSError) as e:
        raise ExtractionError(f"failed to extract {archive}: {e}") from e
