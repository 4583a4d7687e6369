from __future__ import annotations

import dataclasses
import pathlib

import requests

from loguru import logger

from runpack.core.deadline import Deadline
from runpack.core.errors import DownloadError, ProbeError
from runpack.core.platform import DEFAULT_BASE_URL, PlatformTarget


CHUNK_SIZE = 1024 * 1024
DEFAULT_TIMEOUT = (10.0, 60.0)


@dataclasses.dataclass
class DownloadArtifact:
    path: pathlib.Path
    expected_size: int | None = None
    local_size: int | None = None

    @property
    def is_current(self) -> bool:
        return (
            self.expected_size is not None
            and self.local_size is not None
            and self.expected_size == self.local_size
        )


class Downloader:
    __slots__ = ("cache_dir", "base_url", "timeout")

    def __init__(
        self,
        cache_dir: pathlib.Path,
        base_url: str = DEFAULT_BASE_URL,
        timeout: tuple[float, float] = DEFAULT_TIMEOUT,
    ) -> None:
        self.cache_dir = cache_dir
        self.base_url = base_url
        self.timeout = timeout

    def probe(self, url: str) -> int:
        """
        Ask the remote for the resource size without transferring the body

        :param url: remote URL
        :type url: str
        :raises ProbeError: unreachable, non-200 or no usable Content-Length
        :return: remote size in bytes
        :rtype: int
        """
        try:
            response = requests.head(url, allow_redirects=True, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ProbeError(f"probe of {url} failed: {e}") from e

        if response.status_code != 200:
            raise ProbeError(f"probe of {url} failed: HTTP {response.status_code}")

        length = response.headers.get("Content-Length")

        try:
            return int(length)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise ProbeError(f"probe of {url} reported no usable length: {length!r}")

    def fetch(
        self,
        target: PlatformTarget,
        version: str,
        deadline: Deadline | None = None,
    ) -> DownloadArtifact:
        """
        Make sure the target archive is present in the cache directory,
        the transfer is skipped when the local file has the remote size

        :param target: platform to download the runtime for
        :type target: PlatformTarget
        :param version: runtime version
        :type version: str
        :param deadline: target time budget
        :type deadline: Deadline | None
        :raises DownloadError:
        :return: downloaded artifact
        :rtype: DownloadArtifact
        """
        url = target.url(version, self.base_url)
        artifact = DownloadArtifact(self.cache_dir.joinpath(target.file_name(version)))

        logger.debug(f"{target}: probing {url}")
        artifact.expected_size = self.probe(url)

        if artifact.path.is_file():
            artifact.local_size = artifact.path.stat().st_size

        if artifact.is_current:
            logger.info(f"{target}: {artifact.path.name} already downloaded")
            return artifact

        logger.info(f"{target}: downloading {artifact.path.name} ({artifact.expected_size} bytes)")
        self._stream(url, artifact.path, deadline)

        artifact.local_size = artifact.path.stat().st_size

        if not artifact.is_current:
            raise DownloadError(
                f"{url}: received {artifact.local_size} of {artifact.expected_size} bytes",
            )

        return artifact

    def _stream(self, url: str, path: pathlib.Path, deadline: Deadline | None) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with requests.get(url, stream=True, timeout=self.timeout) as response:
                if response.status_code != 200:
                    raise DownloadError(f"download of {url} failed: HTTP {response.status_code}")

                with open(path, "wb") as file:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if deadline is not None:
                            deadline.check()
                        file.write(chunk)
        except requests.exceptions.RequestException as e:
            raise DownloadError(f"download of {url} failed: {e}") from e
