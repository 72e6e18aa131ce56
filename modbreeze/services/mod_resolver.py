"""
模组解析服务

把整合包的模组、资源包、光影包分别作为独立的解析流水线并发执行。
"""

import asyncio
from typing import List

from loguru import logger

from modbreeze.models import Downloadable, ModSide, Pack
from modbreeze.services.dependency_resolver import (
    DEFAULT_MAX_CONCURRENT,
    DependencyResolver,
    Registry,
)


class ModResolver:
    """整合包解析器"""

    def __init__(self, registry: Registry, max_concurrent: int = DEFAULT_MAX_CONCURRENT):
        self.registry = registry
        self.max_concurrent = max_concurrent

    async def resolve_pack(
        self,
        pack: Pack,
        side: ModSide = ModSide.ALL,
        resourcepacks: bool = False,
        shaderpacks: bool = False,
    ) -> List[Downloadable]:
        """
        解析整合包

        Args:
            pack: 整合包
            side: 只下载该端的模组
            resourcepacks: 是否解析资源包
            shaderpacks: 是否解析光影包

        Returns:
            所有类别的待下载文件（模组在前）
        """
        pipelines = [(pack.mods, "mods", side)]
        if resourcepacks:
            pipelines.append((pack.resourcepacks, "resourcepacks", ModSide.ALL))
        if shaderpacks:
            pipelines.append((pack.shaderpacks, "shaderpacks", ModSide.ALL))

        logger.info(
            f"开始解析整合包 '{pack.name}' {pack.version} "
            f"(MC {pack.mc_version}, {pack.loader.value})"
        )
        results = await asyncio.gather(
            *(
                DependencyResolver(self.registry, self.max_concurrent).resolve(
                    refs, pack.mc_version, pack.loader, output=output, side=ref_side
                )
                for refs, output, ref_side in pipelines
            )
        )

        to_download: List[Downloadable] = []
        for (_, output, _), artifacts in zip(pipelines, results):
            logger.info(f"{output}: 解析出 {len(artifacts)} 个文件")
            to_download.extend(artifacts)
        return to_download
