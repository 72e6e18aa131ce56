"""
整合包加载服务

从 TOML/JSON/YAML 文件或 URL 读取整合包定义并转换为 Pack。

格式示例::

    name = "Example"
    version = "1.0.0"
    loader = "fabric"
    mc_version = "1.20.1"

    [mods.common]
    sodium = "AANobbMI"
    jei = { id = 238222, ignore_version = true }

    [resourcepacks]
    faithful = 236821
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiohttp
import toml
import yaml
from loguru import logger

from modbreeze.models import (
    CurseForgeId,
    ModLoader,
    ModReference,
    ModrinthId,
    ModSide,
    Pack,
    RegistryId,
)
from modbreeze.exceptions import (
    ConfigParseError,
    ConfigValidationError,
    EmptyPackError,
    SourceError,
)

_SIDE_LABELS = {
    ModSide.CLIENT: "client",
    ModSide.SERVER: "server",
    ModSide.ALL: "common",
    ModSide.RESOURCEPACK: "resourcepack",
    ModSide.SHADERPACK: "shaderpack",
}


def parse_registry_id(value: Any, name: str) -> RegistryId:
    """整数为 CurseForge ID，字符串为 Modrinth ID/slug"""
    if isinstance(value, bool):
        raise ConfigValidationError(
            f"模组 '{name}' 的 id 无效: {value!r}", context={"name": name}
        )
    if isinstance(value, int):
        return CurseForgeId(value)
    if isinstance(value, str) and value:
        return ModrinthId(value)
    raise ConfigValidationError(
        f"模组 '{name}' 的 id 无效: {value!r}", context={"name": name}
    )


def _convert_mods(
    mods: List[ModReference], raw: Optional[Dict[str, Any]], side: ModSide
) -> None:
    """把一个表中的条目追加到 mods，重复 ID 只保留第一个"""
    if not raw:
        return
    if not isinstance(raw, dict):
        raise ConfigValidationError(
            f"{_SIDE_LABELS[side]} 必须是 名称 = ID 形式的表",
            context={"side": side.value},
        )

    is_pack = side in (ModSide.RESOURCEPACK, ModSide.SHADERPACK)
    for name, entry in raw.items():
        if isinstance(entry, dict):
            if "id" not in entry:
                raise ConfigValidationError(
                    f"模组 '{name}' 缺少 id", context={"name": name}
                )
            ref = ModReference(
                name=name,
                id=parse_registry_id(entry["id"], name),
                side=side,
                ignore_loader=bool(entry.get("ignore_loader", False)),
                ignore_version=bool(entry.get("ignore_version", False)),
            )
        else:
            # 资源包和光影包与加载器无关
            ref = ModReference(
                name=name,
                id=parse_registry_id(entry, name),
                side=side,
                ignore_loader=is_pack,
            )

        if ref in mods:
            logger.warning(f"发现重复的模组: {ref.name}, ID: {ref.id}")
            continue
        logger.info(f"添加 {_SIDE_LABELS[side]} 模组: {ref.name}, ID: {ref.id}")
        mods.append(ref)


def parse_pack(data: Dict[str, Any]) -> Pack:
    """
    把整合包字典转换为 Pack

    Raises:
        ConfigValidationError: 缺少字段或条目格式错误
        InvalidLoaderError: 加载器不是 forge/fabric/quilt
        EmptyPackError: 没有任何引用
    """
    missing = [k for k in ("name", "version", "loader", "mc_version") if k not in data]
    if missing:
        raise ConfigValidationError(
            f"整合包缺少字段: {', '.join(missing)}", context={"missing": missing}
        )

    loader = ModLoader.from_str(str(data["loader"]))
    logger.info(f"加载器: {loader.value}")

    mods_table = data.get("mods") or {}
    if not isinstance(mods_table, dict):
        raise ConfigValidationError(
            "mods 必须是包含 client / server / common 的表",
            context={"mods": type(mods_table).__name__},
        )
    mods: List[ModReference] = []
    _convert_mods(mods, mods_table.get("client"), ModSide.CLIENT)
    _convert_mods(mods, mods_table.get("server"), ModSide.SERVER)
    _convert_mods(mods, mods_table.get("common"), ModSide.ALL)

    resourcepacks: List[ModReference] = []
    _convert_mods(resourcepacks, data.get("resourcepacks"), ModSide.RESOURCEPACK)

    shaderpacks: List[ModReference] = []
    _convert_mods(shaderpacks, data.get("shaderpacks"), ModSide.SHADERPACK)

    # CurseForge API 不提供光影包下载
    supported = [s for s in shaderpacks if not isinstance(s.id, CurseForgeId)]
    if len(supported) != len(shaderpacks):
        logger.warning("CurseForge 光影包不受 CurseForge API 支持，已忽略")
        shaderpacks = supported

    name = str(data["name"])
    if not mods and not resourcepacks and not shaderpacks:
        raise EmptyPackError(name)

    return Pack(
        name=name,
        version=str(data["version"]),
        loader=loader,
        mc_version=str(data["mc_version"]),
        mods=mods,
        resourcepacks=resourcepacks,
        shaderpacks=shaderpacks,
    )


def loads_pack(text: str, format: str = "toml") -> Pack:
    """按格式解析整合包文本"""
    try:
        if format == "toml":
            data = toml.loads(text)
        elif format == "json":
            data = json.loads(text)
        elif format in ("yaml", "yml"):
            data = yaml.safe_load(text)
        else:
            raise SourceError(f"不支持的整合包格式: {format}")
    except (toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(f"整合包解析失败: {e}") from e

    if not isinstance(data, dict):
        raise ConfigParseError("整合包内容必须是一个表")
    return parse_pack(data)


def _format_from_suffix(name: str) -> str:
    suffix = Path(name).suffix.lower().lstrip(".")
    return suffix if suffix in ("json", "yaml", "yml") else "toml"


def load_pack_file(path: Union[str, Path]) -> Pack:
    """从本地文件加载整合包"""
    path = Path(path)
    if not path.is_file():
        raise SourceError(f"整合包文件不存在: {path}", context={"path": str(path)})
    return loads_pack(path.read_text(encoding="utf-8"), _format_from_suffix(path.name))


async def fetch_pack(
    url: str, session: Optional[aiohttp.ClientSession] = None
) -> Pack:
    """从 URL 下载整合包"""
    owned = session is None
    session = session or aiohttp.ClientSession()
    try:
        async with session.get(url) as response:
            if response.status != 200:
                raise SourceError(
                    f"获取整合包失败 (状态码: {response.status})，请检查 URL: {url}",
                    context={"url": url, "status": response.status},
                )
            content_type = response.headers.get("Content-Type")
            if content_type and "text/plain" not in content_type:
                raise SourceError(
                    f"URL 应返回纯文本，实际为 {content_type}，请检查 URL: {url}",
                    context={"url": url, "content_type": content_type},
                )
            text = await response.text()
    except aiohttp.ClientError as e:
        raise SourceError(f"获取整合包失败: {e}", context={"url": url}) from e
    finally:
        if owned:
            await session.close()

    return loads_pack(text, _format_from_suffix(url.split("?")[0]))


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def load_pack(source: str) -> Pack:
    """根据来源类型（路径或 URL）加载整合包"""
    if is_url(source):
        return await fetch_pack(source)
    return load_pack_file(source)
