"""
依赖处理服务

按"代"展开模组引用：每一代并发查询仓库，收集新发现的必需依赖作为下一代，
直到没有新依赖为止。每个 ID 在一次解析中最多查询一次，循环依赖也能终止。
"""

import asyncio
from pathlib import PurePosixPath
from typing import List, Optional, Protocol, Set, Tuple

from loguru import logger

from modbreeze.models import (
    Candidate,
    DependencyInfo,
    Downloadable,
    ModLoader,
    ModReference,
    ModrinthId,
    ModSide,
    RegistryId,
)
from modbreeze.services.version_matcher import VersionMatcher
from modbreeze.exceptions import (
    APIError,
    DistributionDeniedError,
    ModBreezeError,
    NoCompatibleFileError,
)

DEFAULT_MAX_CONCURRENT = 75


class Registry(Protocol):
    async def list_candidates(self, mod_id: RegistryId) -> List[Candidate]: ...

    async def project_for_version(self, version_id: str) -> ModrinthId: ...


def filter_side(refs: List[ModReference], side: ModSide) -> List[ModReference]:
    """按端过滤引用，ALL 不过滤，通用模组总是保留"""
    if side == ModSide.ALL:
        return list(refs)
    return [ref for ref in refs if ref.side in (side, ModSide.ALL)]


class _Generation:
    """单代的结果累加器，所有写入都在锁内完成"""

    def __init__(self, seen: Set[RegistryId]):
        self.seen = seen
        self.lock = asyncio.Lock()
        self.frontier: List[ModReference] = []
        self.artifacts: List[Downloadable] = []

    async def fold(self, artifact: Downloadable, deps: List[ModReference]):
        async with self.lock:
            self.artifacts.append(artifact)
            for dep in deps:
                if dep.id in self.seen:
                    continue
                self.seen.add(dep.id)
                self.frontier.append(dep)
                logger.info(f"添加依赖: {dep.name}, ID: {dep.id}")


class DependencyResolver:
    """依赖解析器"""

    def __init__(
        self,
        registry: Registry,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        matcher: Optional[VersionMatcher] = None,
    ):
        self.registry = registry
        self.max_concurrent = max_concurrent
        self.matcher = matcher or VersionMatcher()
        self.queried: List[RegistryId] = []

    async def resolve(
        self,
        refs: List[ModReference],
        mc_version: str,
        mod_loader: ModLoader,
        output: str = "mods",
        side: ModSide = ModSide.ALL,
    ) -> List[Downloadable]:
        """
        解析模组及其全部必需依赖

        单个模组失败只记录日志，不影响其他模组。

        Args:
            refs: 初始引用
            mc_version: Minecraft 版本
            mod_loader: 模组加载器
            output: 该类别的默认输出目录
            side: 只解析该端的模组

        Returns:
            去重后的待下载文件列表
        """
        self.queried = []
        seen: Set[RegistryId] = set()
        frontier: List[ModReference] = []
        for ref in filter_side(refs, side):
            if ref.id not in seen:
                seen.add(ref.id)
                frontier.append(ref)

        semaphore = asyncio.Semaphore(self.max_concurrent)
        artifacts: List[Downloadable] = []
        generation = 0

        while frontier:
            logger.debug(f"[{output}] 第 {generation} 代: {len(frontier)} 个模组")
            state = _Generation(seen)

            async def visit(ref: ModReference):
                async with semaphore:
                    try:
                        artifact, deps = await self._resolve_one(
                            ref, mc_version, mod_loader, output
                        )
                    except ModBreezeError as e:
                        logger.error(f"模组 {ref.name} (ID: {ref.id}) 解析失败: {e}")
                        return
                await state.fold(artifact, deps)

            await asyncio.gather(*(visit(ref) for ref in frontier))

            artifacts.extend(state.artifacts)
            frontier = state.frontier
            generation += 1

        logger.debug(f"[{output}] 解析完成，共 {generation} 代，{len(artifacts)} 个文件")
        return artifacts

    async def _resolve_one(
        self,
        ref: ModReference,
        mc_version: str,
        mod_loader: ModLoader,
        output: str,
    ) -> Tuple[Downloadable, List[ModReference]]:
        """查询单个模组，返回下载项与其必需依赖"""
        self.queried.append(ref.id)
        candidates = await self.registry.list_candidates(ref.id)

        selection = self.matcher.select_best(
            candidates,
            None if ref.ignore_version else mc_version,
            None if ref.ignore_loader else mod_loader,
        )
        if selection is None:
            raise NoCompatibleFileError(ref.name, ref.id)

        candidate, required = selection
        if candidate.url is None:
            raise DistributionDeniedError(ref.name, ref.id)
        logger.info(f"获取到模组 {ref.name} 的文件, ID: {ref.id}")

        deps = []
        for dep in required:
            dep_id = await self._dependency_id(dep, ref)
            if dep_id is not None:
                deps.append(ref.dependency(dep_id))

        # jar 文件一定是模组，其他文件放到当前类别的目录
        directory = "mods" if candidate.filename.endswith(".jar") else output
        artifact = Downloadable(
            download_url=candidate.url,
            output=PurePosixPath(directory) / candidate.filename,
            length=candidate.size,
        )
        return artifact, deps

    async def _dependency_id(
        self, dep: DependencyInfo, parent: ModReference
    ) -> Optional[RegistryId]:
        if dep.project_id is not None:
            return dep.project_id
        if dep.version_id is None:
            return None
        try:
            return await self.registry.project_for_version(dep.version_id)
        except APIError as e:
            logger.warning(
                f"无法获取 {parent.name} 的依赖版本 {dep.version_id} 所属项目: {e}"
            )
            return None
