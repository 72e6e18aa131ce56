import pytest

from modbreeze.download import DownloadManager
from modbreeze.exceptions import ConfigError, DownloadError
from modbreeze.models import (
    BreezeConfig,
    CurseForgeId,
    ModLoader,
    ModrinthId,
    ModSide,
    Pack,
)
from modbreeze.orchestrator import ModBreezeOrchestrator

from conftest import FakeRegistry, make_candidate, ref


class RecordingTransfer:
    def __init__(self, fail=()):
        self.calls = []
        self.fail = set(fail)

    async def __call__(self, url, download_dir, filename, on_progress):
        self.calls.append(filename)
        if filename in self.fail:
            raise DownloadError(f"下载失败: {url}")
        (download_dir / filename).write_bytes(b"data")
        on_progress(4)


def make_pack(mods=None, resourcepacks=None):
    return Pack(
        name="Test",
        version="1.0",
        loader=ModLoader.FABRIC,
        mc_version="1.20.1",
        mods=mods if mods is not None else [ref("A", "a"), ref("B", "b")],
        resourcepacks=resourcepacks or [],
    )


def make_registry():
    return FakeRegistry(
        {
            ModrinthId("a"): [make_candidate("a.jar", deps=[ModrinthId("c")])],
            ModrinthId("b"): [make_candidate("b.jar")],
            ModrinthId("c"): [make_candidate("c.jar")],
            ModrinthId("rp"): [make_candidate("rp.zip")],
        }
    )


def orchestrator(tmp_path, transfer, pack=None, **kwargs):
    return ModBreezeOrchestrator(
        pack or make_pack(),
        tmp_path,
        registry=make_registry(),
        download_manager=DownloadManager(transfer=transfer),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_second_run_downloads_nothing(tmp_path):
    transfer = RecordingTransfer()

    first = await orchestrator(tmp_path, transfer).run()
    assert sorted(transfer.calls) == ["a.jar", "b.jar", "c.jar"]
    assert len(first) == 3

    transfer.calls.clear()
    second = await orchestrator(tmp_path, transfer).run()

    assert second == []
    assert transfer.calls == []
    assert not any((tmp_path / "mods" / ".old").iterdir())


@pytest.mark.asyncio
async def test_removed_mod_is_quarantined(tmp_path):
    transfer = RecordingTransfer()
    await orchestrator(tmp_path, transfer).run()

    pack = make_pack(mods=[ref("B", "b")])
    await orchestrator(tmp_path, transfer, pack=pack).run()

    mods = tmp_path / "mods"
    assert sorted(p.name for p in mods.iterdir() if p.is_file()) == ["b.jar"]
    assert sorted(p.name for p in (mods / ".old").iterdir()) == ["a.jar", "c.jar"]


@pytest.mark.asyncio
async def test_resourcepacks_delete_stale_files(tmp_path):
    packs = tmp_path / "resourcepacks"
    packs.mkdir()
    (packs / "stale.zip").write_bytes(b"old")
    transfer = RecordingTransfer()
    pack = make_pack(
        resourcepacks=[ref("RP", "rp", side=ModSide.RESOURCEPACK, ignore_loader=True)]
    )

    await orchestrator(tmp_path, transfer, pack=pack, resourcepacks=True).run()

    assert (packs / "rp.zip").exists()
    assert not (packs / "stale.zip").exists()
    assert not (packs / ".old" / "stale.zip").exists()


@pytest.mark.asyncio
async def test_disabled_category_left_untouched(tmp_path):
    shaders = tmp_path / "shaderpacks"
    shaders.mkdir()
    (shaders / "mine.zip").write_bytes(b"user")

    await orchestrator(tmp_path, RecordingTransfer()).run()

    assert (shaders / "mine.zip").exists()
    assert not (shaders / ".old").exists()


@pytest.mark.asyncio
async def test_dry_run_returns_pruned_list(tmp_path):
    (tmp_path / "mods").mkdir()
    (tmp_path / "mods" / "b.jar").write_bytes(b"present")
    transfer = RecordingTransfer()

    pending = await orchestrator(tmp_path, transfer).run(dry_run=True)

    assert sorted(str(d.output) for d in pending) == ["mods/a.jar", "mods/c.jar"]
    assert transfer.calls == []


@pytest.mark.asyncio
async def test_transfer_failure_propagates(tmp_path):
    transfer = RecordingTransfer(fail={"b.jar"})

    with pytest.raises(DownloadError):
        await orchestrator(tmp_path, transfer).run()

    assert (tmp_path / "mods" / "a.jar").exists()
    assert not (tmp_path / "mods" / "b.jar").exists()


@pytest.mark.asyncio
async def test_curseforge_requires_api_key(tmp_path, monkeypatch):
    monkeypatch.delenv("CF_API_KEY", raising=False)
    pack = make_pack(mods=[ref("JEI", CurseForgeId(238222))])
    runner = ModBreezeOrchestrator(pack, tmp_path, config=BreezeConfig())

    with pytest.raises(ConfigError):
        await runner.run()

    assert not (tmp_path / "mods").exists()
