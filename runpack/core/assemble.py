from __future__ import annotations

import pathlib
import shutil

from loguru import logger

from runpack.core.errors import ArtifactMissingError
from runpack.core.launcher import check_artifact_name, write_launcher
from runpack.core.platform import CATALOG, Platform
from runpack.core.report import PipelineReport, Status, TargetResult


def distribution_dir(dist_dir: pathlib.Path, product: str, platform: Platform) -> pathlib.Path:
    return dist_dir.joinpath(f"{product}-{platform}")


def wipe(path: pathlib.Path) -> None:
    """
    Remove everything inside `path` and make sure it exists afterwards
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)


def assemble_distribution(
    runtime_dir: pathlib.Path,
    out_dir: pathlib.Path,
    artifact: pathlib.Path,
    platform: Platform,
    jvm_options: tuple[str, ...] = (),
) -> pathlib.Path:
    """
    Lay out one distribution: `app/<artifact>`, `runtime/` and the launch script

    :param runtime_dir: cached runtime of the platform
    :type runtime_dir: pathlib.Path
    :param out_dir: distribution directory (recreated)
    :type out_dir: pathlib.Path
    :param artifact: application archive
    :type artifact: pathlib.Path
    :param platform: target platform
    :type platform: Platform
    :param jvm_options: extra runtime options for the launch script
    :type jvm_options: tuple[str, ...]
    :return: distribution directory
    :rtype: pathlib.Path
    """
    wipe(out_dir)

    app_dir = out_dir.joinpath("app")
    app_dir.mkdir()
    shutil.copy2(artifact, app_dir.joinpath(artifact.name))

    shutil.copytree(runtime_dir, out_dir.joinpath("runtime"), symlinks=True)

    write_launcher(out_dir, CATALOG[platform].os_family, artifact.name, jvm_options)

    return out_dir


def assemble_distributions(
    cache_dir: pathlib.Path,
    dist_dir: pathlib.Path,
    artifact: pathlib.Path,
    product: str,
    platforms: list[Platform],
    jvm_options: tuple[str, ...] = (),
) -> PipelineReport:
    """
    Rebuild the distributions root from scratch, one distribution per platform
    with a cached runtime. Platforms without one are skipped.

    :raises ArtifactMissingError: application archive does not exist
    :raises LauncherError: artifact name cannot be used in a launch script
    :return: per-platform report
    :rtype: PipelineReport
    """
    report = PipelineReport("assemble")

    if not artifact.is_file():
        raise ArtifactMissingError(f"application artifact not found: {artifact}")

    check_artifact_name(artifact.name)

    wipe(dist_dir)

    for platform in platforms:
        runtime_dir = CATALOG[platform].runtime_dir(cache_dir)

        if not runtime_dir.is_dir():
            logger.warning(f"Skipping {platform}. Runtime not found at: {runtime_dir.absolute()}")
            report.add(TargetResult(platform, Status.SKIPPED, error="runtime not cached"))
            continue

        out_dir = assemble_distribution(
            runtime_dir,
            distribution_dir(dist_dir, product, platform),
            artifact,
            platform,
            jvm_options,
        )

        logger.info(f"{platform}: assembled {out_dir.name}")
        report.add(TargetResult(platform, Status.DONE, out_dir))

    return report
