from dataclasses import dataclass
from pathlib import PurePosixPath


@dataclass
class Downloadable:
    """解析完成、等待下载的文件"""

    download_url: str
    output: PurePosixPath  # 相对 Minecraft 根目录，如 mods/sodium.jar
    length: int

    @property
    def filename(self) -> str:
        return self.output.name

    @property
    def directory(self) -> str:
        return str(self.output.parent)
