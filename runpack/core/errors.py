from __future__ import annotations


class RunpackError(Exception):
    pass


class TargetError(RunpackError):
    """
    Failure bound to a single platform target

    The pipeline records it for that target and carries on with the others.
    """


class DownloadError(TargetError):
    pass


class ProbeError(DownloadError):
    pass


class ExtractionError(TargetError):
    pass


class UnsupportedFormatError(ExtractionError):
    pass


class RuntimeLayoutError(TargetError):
    pass


class TargetTimeoutError(TargetError):
    pass


class ArtifactMissingError(RunpackError):
    pass


class CatalogError(RunpackError):
    pass


class BuildError(RunpackError):
    pass


class LauncherError(RunpackError):
    pass
