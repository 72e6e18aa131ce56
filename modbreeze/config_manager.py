"""
配置文件管理

读写 TOML 格式的持久化配置。
"""

import os
from pathlib import Path
from typing import Optional

import click
import toml
from loguru import logger

from modbreeze.exceptions import ConfigParseError
from modbreeze.models import BreezeConfig


def default_config_path() -> Path:
    """获取默认配置文件路径，可通过 MODBREEZE_CONFIG 覆盖"""
    override = os.environ.get("MODBREEZE_CONFIG")
    if override:
        return Path(override)
    return Path(click.get_app_dir("modbreeze")) / "config.toml"


class ConfigManager:
    """配置文件管理器"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_config_path()

    def load(self) -> BreezeConfig:
        """
        加载配置

        文件不存在时返回默认配置。

        Raises:
            ConfigParseError: 配置文件不是合法的 TOML
        """
        if not self.path.is_file():
            logger.debug(f"配置文件不存在，使用默认配置: {self.path}")
            return BreezeConfig()

        try:
            data = toml.load(self.path)
        except toml.TomlDecodeError as e:
            raise ConfigParseError(
                f"配置文件解析失败: {e}", context={"path": str(self.path)}
            ) from e

        return BreezeConfig.from_dict(data)

    def save(self, config: BreezeConfig) -> None:
        """保存配置"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            toml.dump(config.to_dict(), f)
        logger.debug(f"配置已保存: {self.path}")
