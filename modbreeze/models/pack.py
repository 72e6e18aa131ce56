"""
整合包数据模型

定义模组引用、仓库 ID、模组端与加载器等基础类型。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union

from modbreeze.exceptions import ConfigValidationError, InvalidLoaderError


class ModLoader(Enum):
    """模组加载器"""

    FORGE = "forge"
    FABRIC = "fabric"
    QUILT = "quilt"

    @classmethod
    def from_str(cls, value: str) -> "ModLoader":
        """按名称解析加载器（忽略大小写）"""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidLoaderError(value) from None


class ModSide(Enum):
    """模组适用端"""

    CLIENT = "client"
    SERVER = "server"
    ALL = "all"
    RESOURCEPACK = "resourcepack"
    SHADERPACK = "shaderpack"

    @classmethod
    def from_str(cls, value: str) -> "ModSide":
        """解析命令行与配置中的端名称，支持简写"""
        aliases = {
            "c": cls.CLIENT,
            "client": cls.CLIENT,
            "s": cls.SERVER,
            "server": cls.SERVER,
            "a": cls.ALL,
            "all": cls.ALL,
            "common": cls.ALL,
        }
        side = aliases.get(value.strip().lower())
        if side is None:
            raise ConfigValidationError(
                f"无效的端: '{value}'，可选值为 client/server/all",
                context={"side": value},
            )
        return side


@dataclass(frozen=True)
class CurseForgeId:
    """CurseForge 数字 ID"""

    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ModrinthId:
    """Modrinth 项目 ID 或 slug"""

    value: str

    def __str__(self) -> str:
        return self.value


RegistryId = Union[CurseForgeId, ModrinthId]


@dataclass(eq=False)
class ModReference:
    """
    整合包中的一条模组引用。

    相等性只由 id 决定，name 仅用于日志。
    """

    name: str
    id: RegistryId
    side: ModSide = ModSide.ALL
    ignore_loader: bool = False
    ignore_version: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModReference):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def dependency(self, dep_id: RegistryId) -> "ModReference":
        """以当前引用为父项创建依赖引用，继承约束开关与端"""
        return ModReference(
            name=f"Dependency of {self.name}",
            id=dep_id,
            side=self.side,
            ignore_loader=self.ignore_loader,
            ignore_version=self.ignore_version,
        )


@dataclass(frozen=True)
class Pack:
    """解析后的整合包定义"""

    name: str
    version: str
    loader: ModLoader
    mc_version: str
    mods: List[ModReference] = field(default_factory=list)
    resourcepacks: List[ModReference] = field(default_factory=list)
    shaderpacks: List[ModReference] = field(default_factory=list)

    def all_references(self) -> List[ModReference]:
        return [*self.mods, *self.resourcepacks, *self.shaderpacks]
