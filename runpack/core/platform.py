from __future__ import annotations

import dataclasses
import enum
import pathlib

from runpack.core.errors import CatalogError


DEFAULT_BASE_URL = "https://github.com/graalvm/graalvm-ce-builds/releases/download/jdk-{version}"
VENDOR_PREFIX = "graalvm-community"


class Platform(enum.StrEnum):
    WINDOWS_AMD64 = "windows-amd64"
    LINUX_AMD64 = "linux-amd64"
    LINUX_ARM64 = "linux-arm64"
    MAC_AMD64 = "mac-amd64"
    MAC_ARM64 = "mac-arm64"


class ArchiveFormat(enum.StrEnum):
    ZIP = "zip"
    TAR_GZIP = "tar-gzip"

    @property
    def extension(self) -> str:
        return ".zip" if self == ArchiveFormat.ZIP else ".tar.gz"


class OSFamily(enum.StrEnum):
    WINDOWS = "windows"
    POSIX = "posix"


@dataclasses.dataclass(frozen=True)
class PlatformTarget:
    platform: Platform
    file_pattern: str
    fmt: ArchiveFormat
    os_family: OSFamily

    def __str__(self) -> str:
        return str(self.platform)

    def file_name(self, version: str) -> str:
        """
        Resolve the remote file name for a runtime version

        :param version: runtime version (e.g. 21.0.2)
        :type version: str
        :return: remote file name
        :rtype: str
        """
        return self.file_pattern.format(version=version)

    def url(self, version: str, base_url: str = DEFAULT_BASE_URL) -> str:
        """
        Resolve the remote URL, `base_url` may contain a `{version}` placeholder

        :param version: runtime version
        :type version: str
        :param base_url: remote directory
        :type base_url: str
        :return: full remote URL
        :rtype: str
        """
        base = base_url.format(version=version).rstrip("/")
        return f"{base}/{self.file_name(version)}"

    @property
    def runtime_dir_name(self) -> str:
        return f"runtime-{self.platform}"

    def runtime_dir(self, cache_dir: pathlib.Path) -> pathlib.Path:
        return cache_dir.joinpath(self.runtime_dir_name)

    def staging_dir(self, cache_dir: pathlib.Path) -> pathlib.Path:
        return cache_dir.joinpath(f".extract-{self.platform}")

    @property
    def launcher_name(self) -> str:
        return "run.bat" if self.os_family == OSFamily.WINDOWS else "run.sh"


CATALOG: dict[Platform, PlatformTarget] = {
    Platform.WINDOWS_AMD64: PlatformTarget(
        Platform.WINDOWS_AMD64,
        "graalvm-community-jdk-{version}_windows-x64_bin.zip",
        ArchiveFormat.ZIP,
        OSFamily.WINDOWS,
    ),
    Platform.LINUX_AMD64: PlatformTarget(
        Platform.LINUX_AMD64,
        "graalvm-community-jdk-{version}_linux-x64_bin.tar.gz",
        ArchiveFormat.TAR_GZIP,
        OSFamily.POSIX,
    ),
    Platform.LINUX_ARM64: PlatformTarget(
        Platform.LINUX_ARM64,
        "graalvm-community-jdk-{version}_linux-aarch64_bin.tar.gz",
        ArchiveFormat.TAR_GZIP,
        OSFamily.POSIX,
    ),
    Platform.MAC_AMD64: PlatformTarget(
        Platform.MAC_AMD64,
        "graalvm-community-jdk-{version}_macos-x64_bin.tar.gz",
        ArchiveFormat.TAR_GZIP,
        OSFamily.POSIX,
    ),
    Platform.MAC_ARM64: PlatformTarget(
        Platform.MAC_ARM64,
        "graalvm-community-jdk-{version}_macos-aarch64_bin.tar.gz",
        ArchiveFormat.TAR_GZIP,
        OSFamily.POSIX,
    ),
}


def validate_catalog(catalog: dict[Platform, PlatformTarget] = CATALOG) -> None:
    """
    Check that every catalog entry is keyed by its own platform, has a
    versioned file pattern and a file extension matching its archive format

    :raises CatalogError:
    """
    for platform, target in catalog.items():
        if target.platform != platform:
            raise CatalogError(f"catalog entry \"{platform}\" describes \"{target.platform}\"")
        if "{version}" not in target.file_pattern:
            raise CatalogError(f"\"{platform}\" file pattern has no version placeholder")
        if not target.file_pattern.endswith(target.fmt.extension):
            raise CatalogError(f"\"{platform}\" file pattern does not match format \"{target.fmt}\"")


def resolve_platforms(value: str | list[str] | None) -> list[Platform]:
    """
    Parse a platform selection, comma separated keys or `all`

    :param value: selection (e.g. "linux-amd64,mac-arm64")
    :type value: str | list[str] | None
    :raises ValueError: unknown platform key
    :return: selected platforms in catalog order
    :rtype: list[Platform]
    """
    if value is None or value == "all":
        return list(CATALOG)

    keys = value.split(",") if isinstance(value, str) else value
    selected = {Platform(key.strip()) for key in keys if key.strip()}

    return [platform for platform in CATALOG if platform in selected]
