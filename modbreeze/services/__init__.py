"""
ModBreeze 服务层

包含业务逻辑服务：API 客户端、整合包加载、模组解析、依赖展开、版本匹配。
"""

from modbreeze.services.api_client import (
    CurseForgeClient,
    ModrinthClient,
    RegistryClient,
)
from modbreeze.services.mod_resolver import ModResolver
from modbreeze.services.dependency_resolver import DependencyResolver
from modbreeze.services.version_matcher import VersionMatcher

__all__ = [
    "ModrinthClient",
    "CurseForgeClient",
    "RegistryClient",
    "ModResolver",
    "DependencyResolver",
    "VersionMatcher",
]
