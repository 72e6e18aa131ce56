"""
配置模型

CLI 持久化配置：Minecraft 目录、默认端、整合包来源和下载参数。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from modbreeze.exceptions import ConfigValidationError
from modbreeze.models.pack import ModSide

MANAGED_DIRS = ("mods", "resourcepacks", "shaderpacks")


@dataclass
class BreezeConfig:
    """ModBreeze 配置"""

    mc_dir: Optional[str] = None
    side: ModSide = ModSide.CLIENT
    source: Optional[str] = None
    curseforge_api_key: Optional[str] = None
    max_concurrent: int = 75
    max_retries: int = 3
    retry_delay: float = 1.0
    quarantine: List[str] = field(default_factory=lambda: ["mods"])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BreezeConfig":
        """从字典创建配置，缺省项使用默认值"""
        config = cls()

        for key in ("mc_dir", "source", "curseforge_api_key"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ConfigValidationError(
                    f"{key} 必须为字符串", context={key: value}
                )
            setattr(config, key, value)

        if "side" in data:
            config.side = ModSide.from_str(str(data["side"]))

        max_concurrent = data.get("max_concurrent", config.max_concurrent)
        if not isinstance(max_concurrent, int) or max_concurrent <= 0:
            raise ConfigValidationError(
                "max_concurrent 必须为正整数",
                context={"max_concurrent": max_concurrent},
            )
        config.max_concurrent = max_concurrent

        max_retries = data.get("max_retries", config.max_retries)
        if not isinstance(max_retries, int) or max_retries < 0:
            raise ConfigValidationError(
                "max_retries 必须为非负整数", context={"max_retries": max_retries}
            )
        config.max_retries = max_retries

        retry_delay = data.get("retry_delay", config.retry_delay)
        if not isinstance(retry_delay, (int, float)) or retry_delay < 0:
            raise ConfigValidationError(
                "retry_delay 必须为非负数", context={"retry_delay": retry_delay}
            )
        config.retry_delay = float(retry_delay)

        quarantine = data.get("quarantine", config.quarantine)
        if isinstance(quarantine, str):
            quarantine = [quarantine]
        unknown = [d for d in quarantine if d not in MANAGED_DIRS]
        if unknown:
            raise ConfigValidationError(
                f"quarantine 只能包含 {'/'.join(MANAGED_DIRS)}",
                context={"quarantine": unknown},
            )
        config.quarantine = list(quarantine)

        return config

    def to_dict(self) -> Dict[str, Any]:
        """转换为可写入 TOML 的字典（省略空值）"""
        data: Dict[str, Any] = {
            "side": self.side.value,
            "max_concurrent": self.max_concurrent,
            "max_retries": self.max_retries,
            "retry_delay": self.retry_delay,
            "quarantine": self.quarantine,
        }
        for key in ("mc_dir", "source", "curseforge_api_key"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data
