from __future__ import annotations

import pathlib
import shlex
import typing

from pydantic import BaseModel, field_validator

from runpack.core import pipeline
from runpack.core.platform import DEFAULT_BASE_URL, VENDOR_PREFIX, Platform, resolve_platforms
from runpack.core.report import PipelineReport


class PlatformsArgs(BaseModel):
    platforms: list[Platform] = list(Platform)

    @field_validator("platforms", mode="before")
    @classmethod
    def parse_platforms(cls, v: typing.Any) -> list[Platform]:
        """
        accepts comma separated keys (e.g. `linux-amd64,mac-arm64`) or `all`
        """
        return resolve_platforms(v)


class BuildArgs(BaseModel):
    command: str
    cwd: str | None = None


class FetchRuntimesArgs(PlatformsArgs):
    version: str
    cache_dir: pathlib.Path
    base_url: str = DEFAULT_BASE_URL
    timeout: float = pipeline.DEFAULT_TARGET_TIMEOUT
    workers: int = 1
    vendor_prefix: str = VENDOR_PREFIX


class AssembleArgs(PlatformsArgs):
    cache_dir: pathlib.Path
    dist_dir: pathlib.Path
    artifact: pathlib.Path
    product: str
    jvm_options: tuple[str, ...] = ()

    @field_validator("jvm_options", mode="before")
    @classmethod
    def split_options(cls, v: typing.Any) -> typing.Any:
        return tuple(shlex.split(v)) if isinstance(v, str) else v


class ArchiveArgs(PlatformsArgs):
    dist_dir: pathlib.Path
    artifact: pathlib.Path
    product: str


class PackageArgs(FetchRuntimesArgs, AssembleArgs):
    build_command: str | None = None


StepResult: typing.TypeAlias = PipelineReport | list[PipelineReport] | None


def _build(args: BuildArgs) -> StepResult:
    pipeline.run_build(args.command, args.cwd)
    return None


def _fetch_runtimes(args: FetchRuntimesArgs) -> StepResult:
    return pipeline.ensure_runtimes(
        args.version,
        args.cache_dir,
        args.platforms,
        args.base_url,
        args.timeout,
        args.workers,
        args.vendor_prefix,
    )


def _assemble(args: AssembleArgs) -> StepResult:
    return pipeline.assemble_distributions(
        args.cache_dir,
        args.dist_dir,
        args.artifact,
        args.product,
        args.platforms,
        args.jvm_options,
    )


def _archive(args: ArchiveArgs) -> StepResult:
    return pipeline.produce_archives(args.dist_dir, args.artifact.name, args.product, args.platforms)


def _package(args: PackageArgs) -> StepResult:
    return pipeline.package_all(
        args.version,
        args.cache_dir,
        args.dist_dir,
        args.artifact,
        args.product,
        args.platforms,
        build_command=args.build_command,
        base_url=args.base_url,
        timeout=args.timeout,
        workers=args.workers,
        jvm_options=args.jvm_options,
        vendor_prefix=args.vendor_prefix,
    )


class Step(typing.NamedTuple):
    args: type[BaseModel]
    run: typing.Callable[[typing.Any], StepResult]


STEPS_REGISTRY: dict[str, Step] = {
    "build@1": Step(BuildArgs, _build),
    "fetch-runtimes@1": Step(FetchRuntimesArgs, _fetch_runtimes),
    "assemble@1": Step(AssembleArgs, _assemble),
    "archive@1": Step(ArchiveArgs, _archive),
    "package@1": Step(PackageArgs, _package),
}
