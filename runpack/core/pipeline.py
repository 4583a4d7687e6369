from __future__ import annotations

import concurrent.futures
import functools
import pathlib
import shutil
import subprocess

from loguru import logger

from runpack.config.utils import CmdBuilder
from runpack.core.archive import produce_archives
from runpack.core.assemble import assemble_distributions
from runpack.core.deadline import Deadline
from runpack.core.debloat import DEBLOAT_TARGETS, debloat
from runpack.core.download import Downloader
from runpack.core.errors import BuildError, TargetError
from runpack.core.extract import extract
from runpack.core.normalize import normalize
from runpack.core.platform import CATALOG, DEFAULT_BASE_URL, VENDOR_PREFIX, Platform, validate_catalog
from runpack.core.report import PipelineReport, Status, TargetResult


DEFAULT_TARGET_TIMEOUT = 1800.0

__all__ = [
    "assemble_distributions",
    "ensure_runtime",
    "ensure_runtimes",
    "package_all",
    "produce_archives",
    "run_build",
]


def ensure_runtime(
    platform: Platform,
    version: str,
    cache_dir: pathlib.Path,
    downloader: Downloader,
    timeout: float = DEFAULT_TARGET_TIMEOUT,
    vendor_prefix: str = VENDOR_PREFIX,
) -> TargetResult:
    """
    Download, extract, normalize and debloat the runtime of one platform,
    an existing runtime directory is reused as is

    :raises TargetError:
    :return: platform result
    :rtype: TargetResult
    """
    target = CATALOG[platform]
    runtime_dir = target.runtime_dir(cache_dir)

    if runtime_dir.exists():
        logger.info(f"Skipping {platform}. Runtime already exists.")
        return TargetResult(platform, Status.CACHED, runtime_dir)

    deadline = Deadline.after(str(platform), timeout)
    artifact = downloader.fetch(target, version, deadline)

    staging = target.staging_dir(cache_dir)
    if staging.exists():
        shutil.rmtree(staging)

    # runtime_dir only appears once the runtime is complete
    try:
        logger.info(f"Extracting {platform} runtime")
        extract(artifact.path, staging.joinpath("extracted"), target.fmt, deadline)
        staged_root = normalize(staging.joinpath("extracted"), staging.joinpath("runtime"), vendor_prefix)
        removed = debloat(staged_root, DEBLOAT_TARGETS)
        shutil.move(staged_root, runtime_dir)
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info(f"{platform}: runtime ready, {len(removed)} paths debloated")

    return TargetResult(platform, Status.DONE, runtime_dir)


def _ensure_isolated(platform: Platform, ensure: functools.partial[TargetResult]) -> TargetResult:
    try:
        return ensure(platform)
    except (TargetError, OSError) as e:
        logger.error(f"{platform}: {e}")
        return TargetResult(platform, Status.FAILED, error=str(e))


def ensure_runtimes(
    version: str,
    cache_dir: pathlib.Path,
    platforms: list[Platform],
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TARGET_TIMEOUT,
    workers: int = 1,
    vendor_prefix: str = VENDOR_PREFIX,
) -> PipelineReport:
    """
    Make sure every selected platform has a cached runtime. Safe to re-run,
    failures are reported per platform and never stop the others.

    :param version: runtime version
    :type version: str
    :param cache_dir: runtime cache directory
    :type cache_dir: pathlib.Path
    :param platforms: selected platforms
    :type platforms: list[Platform]
    :param base_url: remote directory, may contain `{version}`
    :type base_url: str
    :param timeout: per platform time budget in seconds
    :type timeout: float
    :param workers: number of platforms processed at once
    :type workers: int
    :param vendor_prefix: vendor directory name prefix
    :type vendor_prefix: str
    :raises CatalogError: misconfigured platform catalog
    :return: per-platform report
    :rtype: PipelineReport
    """
    validate_catalog()
    cache_dir.mkdir(parents=True, exist_ok=True)

    report = PipelineReport("fetch-runtimes")
    downloader = Downloader(cache_dir, base_url)
    ensure = functools.partial(
        ensure_runtime,
        version=version,
        cache_dir=cache_dir,
        downloader=downloader,
        timeout=timeout,
        vendor_prefix=vendor_prefix,
    )

    if workers <= 1:
        for platform in platforms:
            report.add(_ensure_isolated(platform, ensure))
        return report

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(_ensure_isolated, platform, ensure)
            for platform in platforms
        ]
        for future in futures:
            report.add(future.result())

    return report


def run_build(command: str, cwd: str | None = None) -> None:
    """
    Run the external application build command, its output is streamed to the log

    :raises BuildError: non-zero exit status
    """
    logger.info(f"Building application: {command}")

    proc = CmdBuilder(command).cwd(cwd).stderr(subprocess.STDOUT).build()

    if not proc.stdout:
        raise ValueError("process has not stdout pipe")

    for line in proc.stdout:
        logger.info(line.decode().rstrip())

    if proc.wait() != 0:
        raise BuildError(f"build command failed with status {proc.returncode}: {command}")


def package_all(
    version: str,
    cache_dir: pathlib.Path,
    dist_dir: pathlib.Path,
    artifact: pathlib.Path,
    product: str,
    platforms: list[Platform],
    build_command: str | None = None,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TARGET_TIMEOUT,
    workers: int = 1,
    jvm_options: tuple[str, ...] = (),
    vendor_prefix: str = VENDOR_PREFIX,
) -> list[PipelineReport]:
    """
    Build the application (when a command is given), then fetch runtimes,
    assemble distributions and produce archives in order
    """
    if build_command:
        run_build(build_command)

    runtimes = ensure_runtimes(version, cache_dir, platforms, base_url, timeout, workers, vendor_prefix)
    distributions = assemble_distributions(cache_dir, dist_dir, artifact, product, platforms, jvm_options)
    archives = produce_archives(dist_dir, artifact.name, product, platforms)

    return [runtimes, distributions, archives]
