"""
ModBreeze 数据模型包

包含整合包模型、配置模型和 API 模型定义。
"""

from modbreeze.models.pack import (
    ModLoader,
    ModSide,
    CurseForgeId,
    ModrinthId,
    RegistryId,
    ModReference,
    Pack,
)
from modbreeze.models.config import BreezeConfig, MANAGED_DIRS
from modbreeze.models.api import Candidate, DependencyInfo
from modbreeze.models.downloadable import Downloadable

__all__ = [
    # 整合包模型
    "ModLoader",
    "ModSide",
    "CurseForgeId",
    "ModrinthId",
    "RegistryId",
    "ModReference",
    "Pack",
    # 配置模型
    "BreezeConfig",
    "MANAGED_DIRS",
    # API 模型
    "Candidate",
    "DependencyInfo",
    # 下载模型
    "Downloadable",
]
