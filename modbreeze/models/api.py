"""
API 数据模型

定义两个模组仓库共用的候选文件与依赖信息。
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List

from modbreeze.models.pack import (
    CurseForgeId,
    ModLoader,
    ModrinthId,
    RegistryId,
)

# CurseForge 文件关系类型
CURSEFORGE_RELATION_TYPES = {
    1: "embedded",
    2: "optional",
    3: "required",
    4: "tool",
    5: "incompatible",
    6: "include",
}

_LOADER_NAMES = {loader.value: loader for loader in ModLoader}
# CurseForge gameVersions 中混入的其他标签
_CURSEFORGE_TAGS = {"neoforge", "liteloader", "rift", "cauldron", "client", "server"}
_FRACTION = re.compile(r"\.(\d+)")


def _parse_date(value: Optional[str]) -> datetime:
    if not value:
        return datetime.min
    # Python 3.11 之前 fromisoformat 只接受 3 或 6 位小数秒
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value)
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(
            tzinfo=None
        )
    except ValueError:
        return datetime.min


@dataclass(frozen=True)
class DependencyInfo:
    """依赖信息"""

    project_id: Optional[RegistryId]
    version_id: Optional[str] = None
    dependency_type: str = "required"  # required, optional, incompatible, embedded

    @property
    def required(self) -> bool:
        return self.dependency_type == "required"


@dataclass
class Candidate:
    """
    仓库中某个模组的一个可下载文件/版本。

    url 为 None 表示作者禁止第三方分发。
    """

    id: str
    filename: str
    url: Optional[str]
    size: int
    game_versions: List[str] = field(default_factory=list)
    loaders: List[ModLoader] = field(default_factory=list)
    date: datetime = datetime.min
    dependencies: List[DependencyInfo] = field(default_factory=list)

    @classmethod
    def from_modrinth(cls, data: dict) -> Optional["Candidate"]:
        """
        将 Modrinth API 返回的版本信息转换为 Candidate 对象。

        版本没有文件时返回 None。
        """
        files = data.get("files", [])
        if not files:
            return None
        primary = next((f for f in files if f.get("primary", False)), files[0])

        dependencies = [
            DependencyInfo(
                project_id=(
                    ModrinthId(dep["project_id"]) if dep.get("project_id") else None
                ),
                version_id=dep.get("version_id"),
                dependency_type=dep.get("dependency_type", "required"),
            )
            for dep in data.get("dependencies", [])
        ]

        return cls(
            id=data.get("id", ""),
            filename=primary["filename"],
            url=primary.get("url"),
            size=primary.get("size", 0),
            game_versions=data.get("game_versions", []),
            loaders=[
                _LOADER_NAMES[name]
                for name in data.get("loaders", [])
                if name in _LOADER_NAMES
            ],
            date=_parse_date(data.get("date_published")),
            dependencies=dependencies,
        )

    @classmethod
    def from_curseforge(cls, data: dict) -> "Candidate":
        """
        将 CurseForge API 返回的文件信息转换为 Candidate 对象。

        CurseForge 把加载器名称混在 gameVersions 里，需要拆分出来。
        """
        game_versions = []
        loaders = []
        for name in data.get("gameVersions", []):
            loader = _LOADER_NAMES.get(name.lower())
            if loader is not None:
                loaders.append(loader)
            elif name.lower() not in _CURSEFORGE_TAGS:
                game_versions.append(name)

        dependencies = [
            DependencyInfo(
                project_id=CurseForgeId(int(dep["modId"])),
                dependency_type=CURSEFORGE_RELATION_TYPES.get(
                    dep.get("relationType"), "unknown"
                ),
            )
            for dep in data.get("dependencies", [])
        ]

        return cls(
            id=str(data.get("id", "")),
            filename=data["fileName"],
            url=data.get("downloadUrl"),
            size=data.get("fileLength", 0),
            game_versions=game_versions,
            loaders=loaders,
            date=_parse_date(data.get("fileDate")),
            dependencies=dependencies,
        )
