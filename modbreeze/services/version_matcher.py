"""
版本匹配服务

从仓库给出的候选文件中挑选与 Minecraft 版本、模组加载器兼容的最新文件。
"""

from typing import Iterable, List, Optional, Tuple

from modbreeze.models import Candidate, DependencyInfo, ModLoader


class VersionMatcher:
    """版本匹配器"""

    def matches(
        self,
        candidate: Candidate,
        mc_version: Optional[str],
        loader: Optional[ModLoader],
    ) -> bool:
        """
        检查候选文件是否满足约束

        约束为 None 时视为不限制。
        """
        if mc_version is not None and mc_version not in candidate.game_versions:
            return False
        if loader is not None and loader not in candidate.loaders:
            return False
        return True

    def _first_match(
        self,
        candidates: Iterable[Candidate],
        mc_version: Optional[str],
        loader: Optional[ModLoader],
    ) -> Optional[Candidate]:
        return next(
            (c for c in candidates if self.matches(c, mc_version, loader)), None
        )

    def select_best(
        self,
        candidates: List[Candidate],
        mc_version: Optional[str],
        loader: Optional[ModLoader],
    ) -> Optional[Tuple[Candidate, List[DependencyInfo]]]:
        """
        选出最新的兼容文件

        Args:
            candidates: 候选文件
            mc_version: Minecraft 版本，None 表示忽略
            loader: 模组加载器，None 表示忽略

        Returns:
            (候选文件, 必需依赖列表)，没有兼容文件时返回 None
        """
        ordered = sorted(candidates, key=lambda c: c.date, reverse=True)

        best = self._first_match(ordered, mc_version, loader)
        # Quilt 可以加载 Fabric 模组
        if best is None and loader == ModLoader.QUILT:
            best = self._first_match(ordered, mc_version, ModLoader.FABRIC)

        if best is None:
            return None
        return best, [dep for dep in best.dependencies if dep.required]
