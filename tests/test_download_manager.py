import asyncio
from pathlib import Path, PurePosixPath

import pytest
from aioresponses import aioresponses

from modbreeze.download.manager import DownloadManager, ProgressTracker, count_bytes
from modbreeze.download.manager import DownloadStats
from modbreeze.download import manager as manager_module
from modbreeze.exceptions import DownloadError, DownloadNetworkError
from modbreeze.models import Downloadable


def item(path: str, length: int = 10) -> Downloadable:
    return Downloadable(
        download_url=f"https://cdn.example.com/{PurePosixPath(path).name}",
        output=PurePosixPath(path),
        length=length,
    )


class FakeTransfer:
    def __init__(self, fail=(), delay: float = 0):
        self.fail = set(fail)
        self.delay = delay
        self.finished = []

    async def __call__(self, url, download_dir: Path, filename, on_progress):
        await asyncio.sleep(self.delay)
        if filename in self.fail:
            raise DownloadNetworkError(f"HTTP 500: {url}")
        assert download_dir.is_dir()
        (download_dir / filename).write_bytes(b"x" * 10)
        on_progress(10)
        self.finished.append(filename)


def test_count_bytes():
    assert count_bytes([item("mods/a.jar", 5), item("mods/b.jar", 7)]) == 12


def test_progress_tracker_reports_aggregate():
    seen = []
    stats = DownloadStats(bytes_total=100)
    tracker = ProgressTracker(stats, lambda done, total: seen.append((done, total)))

    tracker.advance(30)
    tracker.advance(70)

    assert stats.bytes_downloaded == 100
    assert seen == [(30, 100), (100, 100)]


@pytest.mark.asyncio
async def test_execute_creates_directories_and_counts_progress(tmp_path):
    transfer = FakeTransfer()
    manager = DownloadManager(transfer=transfer)
    targets = [item("mods/a.jar"), item("resourcepacks/b.zip"), item("shaderpacks/c.zip")]

    stats = await manager.execute(tmp_path, targets)

    assert stats.completed == 3
    assert stats.bytes_total == 30
    assert stats.bytes_downloaded == 30
    assert (tmp_path / "mods" / "a.jar").exists()
    assert (tmp_path / "resourcepacks" / "b.zip").exists()
    assert (tmp_path / "shaderpacks" / "c.zip").exists()


@pytest.mark.asyncio
async def test_failure_raised_after_siblings_finish(tmp_path):
    transfer = FakeTransfer(fail={"bad.jar"}, delay=0.01)
    manager = DownloadManager(transfer=transfer)
    targets = [item("mods/bad.jar"), item("mods/a.jar"), item("mods/b.jar")]

    with pytest.raises(DownloadNetworkError):
        await manager.execute(tmp_path, targets)

    assert sorted(transfer.finished) == ["a.jar", "b.jar"]
    assert manager.get_failed() == ["mods/bad.jar"]
    assert manager.get_stats().failed == 1


@pytest.mark.asyncio
async def test_download_file_writes_atomically(tmp_path):
    progress = []
    manager = DownloadManager(max_retries=0)
    with aioresponses() as mocked:
        mocked.get("https://cdn.example.com/a.jar", status=200, body=b"jar-bytes")
        await manager.download_file(
            "https://cdn.example.com/a.jar", tmp_path, "a.jar", progress.append
        )
    await manager.close()

    assert (tmp_path / "a.jar").read_bytes() == b"jar-bytes"
    assert not (tmp_path / "a.jar.part").exists()
    assert sum(progress) == len(b"jar-bytes")


@pytest.mark.asyncio
async def test_download_file_http_error_leaves_nothing(tmp_path):
    manager = DownloadManager(max_retries=1, retry_delay=0)
    with aioresponses() as mocked:
        mocked.get("https://cdn.example.com/a.jar", status=500)
        mocked.get("https://cdn.example.com/a.jar", status=503)
        with pytest.raises(DownloadError):
            await manager.download_file(
                "https://cdn.example.com/a.jar", tmp_path, "a.jar", lambda _: None
            )
    await manager.close()

    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_download_file_retries(tmp_path):
    manager = DownloadManager(max_retries=2, retry_delay=0)
    with aioresponses() as mocked:
        mocked.get("https://cdn.example.com/a.jar", status=502)
        mocked.get("https://cdn.example.com/a.jar", status=200, body=b"ok")
        await manager.download_file(
            "https://cdn.example.com/a.jar", tmp_path, "a.jar", lambda _: None
        )
    await manager.close()

    assert (tmp_path / "a.jar").read_bytes() == b"ok"


@pytest.mark.asyncio
async def test_retry_does_not_count_bytes_twice(tmp_path, monkeypatch):
    real_replace = manager_module.os.replace
    calls = []

    def flaky_replace(src, dst):
        calls.append(dst)
        if len(calls) == 1:
            raise OSError("disk busy")
        real_replace(src, dst)

    monkeypatch.setattr(manager_module.os, "replace", flaky_replace)
    progress = []
    manager = DownloadManager(max_retries=1, retry_delay=0)
    with aioresponses() as mocked:
        mocked.get("https://cdn.example.com/a.jar", status=200, body=b"jar-bytes")
        mocked.get("https://cdn.example.com/a.jar", status=200, body=b"jar-bytes")
        await manager.download_file(
            "https://cdn.example.com/a.jar", tmp_path, "a.jar", progress.append
        )
    await manager.close()

    assert len(calls) == 2
    assert sum(progress) == len(b"jar-bytes")
    assert all(delta > 0 for delta in progress)


def test_progress_percentage_is_clamped():
    stats = DownloadStats(bytes_total=10)
    tracker = ProgressTracker(stats)

    tracker.advance(25)

    assert stats.bytes_downloaded == 25
    assert tracker._last_percent == 100.0
