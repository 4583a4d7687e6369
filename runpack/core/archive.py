from __future__ import annotations

import os
import pathlib
import stat
import time
import zipfile

from loguru import logger

from runpack.core.assemble import distribution_dir
from runpack.core.platform import Platform
from runpack.core.report import PipelineReport, Status, TargetResult


def archive_name(artifact_name: str, platform: Platform) -> str:
    return f"{pathlib.PurePath(artifact_name).stem}-{platform}.zip"


def _symlink_info(path: pathlib.Path, arcname: str) -> zipfile.ZipInfo:
    mtime = time.localtime(path.lstat().st_mtime)
    info = zipfile.ZipInfo(arcname, date_time=mtime[:6])
    info.create_system = 3
    info.external_attr = (stat.S_IFLNK | 0o777) << 16
    info.compress_type = zipfile.ZIP_STORED
    return info


def zip_distribution(source_dir: pathlib.Path, zip_path: pathlib.Path, compresslevel: int = 6) -> int:
    """
    Zip a distribution directory, entries keep the directory name as their
    root so unpacking yields a single folder. Links pointing inside the
    distribution are stored as link entries, others are left out

    :param source_dir: distribution directory
    :type source_dir: pathlib.Path
    :param zip_path: output zip file
    :type zip_path: pathlib.Path
    :param compresslevel: deflate level (0-9)
    :type compresslevel: int
    :return: number of written entries
    :rtype: int
    """
    root = source_dir.resolve()
    count = 0

    zip_path.unlink(missing_ok=True)

    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=compresslevel) as zf:
        for path in sorted(source_dir.rglob("*")):
            if not path.resolve().is_relative_to(root):
                logger.warning(f"{path} points outside of {source_dir.name}, not archived")
                continue

            arcname = pathlib.PurePosixPath(source_dir.name, *path.relative_to(source_dir).parts)

            if path.is_symlink():
                zf.writestr(_symlink_info(path, str(arcname)), os.readlink(path))
            else:
                zf.write(path, arcname=str(arcname))
            count += 1

    return count


def produce_archives(
    dist_dir: pathlib.Path,
    artifact_name: str,
    product: str,
    platforms: list[Platform],
) -> PipelineReport:
    report = PipelineReport("archive")

    for platform in platforms:
        source_dir = distribution_dir(dist_dir, product, platform)

        if not source_dir.is_dir():
            logger.warning(f"Skipping {platform}. No distribution at: {source_dir}")
            report.add(TargetResult(platform, Status.SKIPPED, error="not assembled"))
            continue

        zip_path = dist_dir.joinpath(archive_name(artifact_name, platform))
        entries = zip_distribution(source_dir, zip_path)

        logger.info(f"Created distributable: {zip_path.name} ({entries} entries)")
        report.add(TargetResult(platform, Status.DONE, zip_path))

    return report
