"""
主协调器

整合解析、清理、下载三个阶段，实现整合包同步流程。
"""

import os
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from modbreeze.logger import stage
from modbreeze.models import (
    BreezeConfig,
    CurseForgeId,
    Downloadable,
    ModSide,
    Pack,
)
from modbreeze.services import ModResolver, RegistryClient
from modbreeze.services.dependency_resolver import Registry
from modbreeze.download import DownloadManager, clean
from modbreeze.exceptions import ConfigError, EmptyPackError


class ModBreezeOrchestrator:
    """ModBreeze 主协调器"""

    def __init__(
        self,
        pack: Pack,
        mc_dir: Union[str, Path],
        side: ModSide = ModSide.CLIENT,
        resourcepacks: bool = False,
        shaderpacks: bool = False,
        config: Optional[BreezeConfig] = None,
        registry: Optional[Registry] = None,
        download_manager: Optional[DownloadManager] = None,
    ):
        self.pack = pack
        self.mc_dir = Path(mc_dir)
        self.side = side
        self.resourcepacks = resourcepacks
        self.shaderpacks = shaderpacks
        self.config = config or BreezeConfig()
        self._registry = registry
        self.download_manager = download_manager or DownloadManager(
            max_concurrent=self.config.max_concurrent,
            max_retries=self.config.max_retries,
            retry_delay=self.config.retry_delay,
        )

    @property
    def api_key(self) -> Optional[str]:
        return os.environ.get("CF_API_KEY") or self.config.curseforge_api_key

    def _categories(self) -> List[str]:
        categories = ["mods"]
        if self.resourcepacks:
            categories.append("resourcepacks")
        if self.shaderpacks:
            categories.append("shaderpacks")
        return categories

    def _validate(self):
        """在任何网络请求之前检查整合包"""
        if not self.pack.all_references():
            raise EmptyPackError(self.pack.name)

        if self._registry is None and not self.api_key:
            curseforge = [
                ref.name
                for ref in self.pack.all_references()
                if isinstance(ref.id, CurseForgeId)
            ]
            if curseforge:
                raise ConfigError(
                    "整合包包含 CurseForge 模组，请设置环境变量 CF_API_KEY "
                    "或在配置中填写 curseforge_api_key",
                    context={"mods": curseforge},
                )

    async def resolve(self) -> List[Downloadable]:
        """解析整合包为待下载列表"""
        registry = self._registry or RegistryClient(curseforge_api_key=self.api_key)
        try:
            resolver = ModResolver(registry, self.config.max_concurrent)
            return await resolver.resolve_pack(
                self.pack, self.side, self.resourcepacks, self.shaderpacks
            )
        finally:
            if self._registry is None:
                await registry.close()

    def clean(self, to_download: List[Downloadable]):
        """逐个清理被管理的目录"""
        for category in self._categories():
            report = clean(
                self.mc_dir / category,
                to_download,
                quarantine=category in self.config.quarantine,
            )
            if report.quarantined:
                logger.info(
                    f"{category}: {len(report.quarantined)} 个旧文件已移入 .old"
                )
            if report.deleted:
                logger.info(f"{category}: 删除了 {len(report.deleted)} 个文件")

    async def run(self, dry_run: bool = False) -> List[Downloadable]:
        """
        运行完整的同步流程

        Args:
            dry_run: 只解析和清理，不下载

        Returns:
            清理后仍需下载的文件列表
        """
        logger.info(f"开始同步整合包 '{self.pack.name}' 到 {self.mc_dir}")
        self._validate()

        with stage("resolve"):
            to_download = await self.resolve()
            logger.success(f"解析完成，共 {len(to_download)} 个文件")

        with stage("clean"):
            self.clean(to_download)
            logger.success(f"清理完成，需要下载 {len(to_download)} 个文件")

        if dry_run:
            for downloadable in to_download:
                logger.info(f"[干运行] 将下载 {downloadable.output}")
            return to_download

        if not to_download:
            logger.success("所有文件均已是最新")
            return to_download

        with stage("download"):
            await self.download_manager.execute(self.mc_dir, to_download)
        logger.success("ModBreeze 任务完成!")
        return to_download
