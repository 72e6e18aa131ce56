import asyncio
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest

from modbreeze.models import (
    Candidate,
    DependencyInfo,
    ModLoader,
    ModReference,
    ModrinthId,
    ModSide,
    RegistryId,
)
from modbreeze.exceptions import APINotFoundError


def make_candidate(
    filename: str,
    deps: Optional[List[RegistryId]] = None,
    game_versions: Optional[List[str]] = None,
    loaders: Optional[List[ModLoader]] = None,
    url: Optional[str] = "default",
    size: int = 100,
    age_days: int = 0,
    dependencies: Optional[List[DependencyInfo]] = None,
) -> Candidate:
    if url == "default":
        url = f"https://cdn.example.com/{filename}"
    if dependencies is None:
        dependencies = [DependencyInfo(project_id=d) for d in deps or []]
    return Candidate(
        id=filename,
        filename=filename,
        url=url,
        size=size,
        game_versions=game_versions if game_versions is not None else ["1.20.1"],
        loaders=loaders if loaders is not None else [ModLoader.FABRIC],
        date=datetime(2024, 1, 1) - timedelta(days=age_days),
        dependencies=dependencies,
    )


def ref(
    name: str,
    mod_id,
    side: ModSide = ModSide.ALL,
    ignore_loader: bool = False,
    ignore_version: bool = False,
) -> ModReference:
    if isinstance(mod_id, str):
        mod_id = ModrinthId(mod_id)
    return ModReference(
        name=name,
        id=mod_id,
        side=side,
        ignore_loader=ignore_loader,
        ignore_version=ignore_version,
    )


class FakeRegistry:
    """内存中的模组仓库，记录每个 ID 的查询次数和最大并发数"""

    def __init__(
        self,
        candidates: Dict[RegistryId, List[Candidate]],
        versions: Optional[Dict[str, ModrinthId]] = None,
        delay: float = 0,
    ):
        self.candidates = candidates
        self.versions = versions or {}
        self.delay = delay
        self.calls: Counter = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_candidates(self, mod_id: RegistryId) -> List[Candidate]:
        self.calls[mod_id] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if mod_id not in self.candidates:
                raise APINotFoundError(f"not found: {mod_id}")
            return self.candidates[mod_id]
        finally:
            self.in_flight -= 1

    async def project_for_version(self, version_id: str) -> ModrinthId:
        if version_id not in self.versions:
            raise APINotFoundError(f"version not found: {version_id}")
        return self.versions[version_id]


@pytest.fixture
def registry_factory():
    return FakeRegistry
