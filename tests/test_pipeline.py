import zipfile
from unittest.mock import patch

import pytest

from runpack.core.errors import BuildError
from runpack.core.pipeline import ensure_runtimes, package_all, run_build
from runpack.core.platform import CATALOG, Platform
from runpack.core.report import Status
from tests.utils import KEPT_FILES, RUNTIME_VERSION, tree

PLATFORMS = [Platform.WINDOWS_AMD64, Platform.LINUX_AMD64]


@pytest.fixture
def remote(fake_remote, runtime_archives):
    fake_remote.publish(Platform.WINDOWS_AMD64, runtime_archives["zip"])
    fake_remote.publish(Platform.LINUX_AMD64, runtime_archives["tar"])
    fake_remote.publish(Platform.MAC_ARM64, runtime_archives["bundle"])
    return fake_remote


def test_full_pipeline_from_scratch(remote, tmp_path, artifact):
    cache = tmp_path / "jdks"
    dist = tmp_path / "dist"

    runtimes, distributions, archives = package_all(
        RUNTIME_VERSION, cache, dist, artifact, "app", PLATFORMS, base_url=remote.base_url,
    )

    assert runtimes.ok and distributions.ok and archives.ok
    assert (cache / "runtime-windows-amd64").is_dir()
    assert (cache / "runtime-linux-amd64").is_dir()
    assert sorted(p.name for p in dist.glob("*.zip")) == [
        "app-1.0.0-linux-amd64.zip",
        "app-1.0.0-windows-amd64.zip",
    ]
    for platform in PLATFORMS:
        with zipfile.ZipFile(dist / f"app-1.0.0-{platform}.zip") as zf:
            tops = {name.split("/")[1] for name in zf.namelist() if name.count("/") >= 1}
        assert {"app", "runtime", CATALOG[platform].launcher_name} <= tops


def test_formats_and_layouts_converge(remote, tmp_path):
    cache = tmp_path / "jdks"
    platforms = [Platform.WINDOWS_AMD64, Platform.LINUX_AMD64, Platform.MAC_ARM64]

    report = ensure_runtimes(RUNTIME_VERSION, cache, platforms, remote.base_url)

    assert [r.status for r in report.results] == [Status.DONE] * 3
    trees = [tree(CATALOG[p].runtime_dir(cache)) for p in platforms]
    assert set(trees[0]) == KEPT_FILES
    assert trees[0] == trees[1] == trees[2]
    assert sorted(p.name for p in cache.iterdir() if p.is_dir()) == [
        "runtime-linux-amd64", "runtime-mac-arm64", "runtime-windows-amd64",
    ]


def test_second_run_does_no_network_traffic(remote, tmp_path):
    cache = tmp_path / "jdks"

    ensure_runtimes(RUNTIME_VERSION, cache, PLATFORMS, remote.base_url)
    assert remote.count("GET") == 2
    remote.requests.clear()

    report = ensure_runtimes(RUNTIME_VERSION, cache, PLATFORMS, remote.base_url)

    assert remote.requests == []
    assert [r.status for r in report.results] == [Status.CACHED, Status.CACHED]


def test_downloaded_archive_is_reused(remote, tmp_path):
    cache = tmp_path / "jdks"
    ensure_runtimes(RUNTIME_VERSION, cache, [Platform.LINUX_AMD64], remote.base_url)
    (cache / "runtime-linux-amd64").rename(tmp_path / "moved")
    remote.requests.clear()

    report = ensure_runtimes(RUNTIME_VERSION, cache, [Platform.LINUX_AMD64], remote.base_url)

    assert report.ok
    assert remote.count("HEAD") == 1
    assert remote.count("GET") == 0


def test_failures_stay_with_their_target(remote, tmp_path):
    cache = tmp_path / "jdks"
    platforms = [Platform.LINUX_ARM64, Platform.WINDOWS_AMD64, Platform.LINUX_AMD64]

    report = ensure_runtimes(RUNTIME_VERSION, cache, platforms, remote.base_url)

    assert [r.status for r in report.results] == [Status.FAILED, Status.DONE, Status.DONE]
    assert "HTTP 404" in report.failed[0].error
    assert not (cache / "runtime-linux-arm64").exists()


def test_archive_without_runtime_directory_fails_the_target(fake_remote, tmp_path):
    junk = tmp_path / "junk.zip"
    with zipfile.ZipFile(junk, "w") as zf:
        zf.writestr("readme.txt", b"no runtime here")
    fake_remote.publish(Platform.WINDOWS_AMD64, junk)
    cache = tmp_path / "jdks"

    report = ensure_runtimes(RUNTIME_VERSION, cache, [Platform.WINDOWS_AMD64], fake_remote.base_url)

    assert report.failed[0].platform == Platform.WINDOWS_AMD64
    assert not (cache / "runtime-windows-amd64").exists()
    assert not (cache / ".extract-windows-amd64").exists()


def test_parallel_workers(remote, tmp_path):
    cache = tmp_path / "jdks"
    platforms = [Platform.WINDOWS_AMD64, Platform.LINUX_ARM64, Platform.LINUX_AMD64, Platform.MAC_ARM64]

    report = ensure_runtimes(RUNTIME_VERSION, cache, platforms, remote.base_url, workers=4)

    assert [r.platform for r in report.results] == platforms
    assert [r.status for r in report.results] == [Status.DONE, Status.FAILED, Status.DONE, Status.DONE]


def test_partial_distribution_set(remote, tmp_path, artifact):
    cache = tmp_path / "jdks"
    dist = tmp_path / "dist"

    runtimes, distributions, archives = package_all(
        RUNTIME_VERSION, cache, dist, artifact, "app",
        [Platform.LINUX_AMD64, Platform.LINUX_ARM64], base_url=remote.base_url,
    )

    assert len(runtimes.failed) == 1
    assert [r.platform for r in distributions.skipped] == [Platform.LINUX_ARM64]
    assert [p.name for p in dist.glob("*.zip")] == ["app-1.0.0-linux-amd64.zip"]


def test_run_build(tmp_path):
    run_build("echo built > marker.txt", cwd=str(tmp_path))

    assert (tmp_path / "marker.txt").read_text().strip() == "built"


def test_run_build_failure():
    with pytest.raises(BuildError):
        run_build("exit 3")


def test_package_all_stops_when_build_fails(tmp_path, artifact):
    with patch("runpack.core.pipeline.ensure_runtimes") as mock_ensure:
        with pytest.raises(BuildError):
            package_all(
                RUNTIME_VERSION, tmp_path / "jdks", tmp_path / "dist", artifact, "app",
                PLATFORMS, build_command="false",
            )
    mock_ensure.assert_not_called()


def test_interrupted_debloat_leaves_no_runtime_behind(remote, tmp_path):
    cache = tmp_path / "jdks"

    with patch("runpack.core.pipeline.debloat", side_effect=OSError("disk full")):
        report = ensure_runtimes(RUNTIME_VERSION, cache, [Platform.LINUX_AMD64], remote.base_url)

    assert report.failed[0].error == "disk full"
    assert not (cache / "runtime-linux-amd64").exists()
    assert not (cache / ".extract-linux-amd64").exists()

    report = ensure_runtimes(RUNTIME_VERSION, cache, [Platform.LINUX_AMD64], remote.base_url)

    assert report.results[0].status == Status.DONE
    assert set(tree(cache / "runtime-linux-amd64")) == KEPT_FILES
