"""
目录清理

对比本地目录与待下载列表：已存在的文件无需下载，过时文件移入 .old 或删除，
未完成的 .part 文件直接删除。
"""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Union

from loguru import logger

from modbreeze.models import Downloadable
from modbreeze.exceptions import CleanError

QUARANTINE_DIR = ".old"
PART_SUFFIX = ".part"


@dataclass
class CleanReport:
    """清理结果"""

    kept: List[str] = field(default_factory=list)
    quarantined: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)


def find_duplicates(
    items: List[Downloadable],
    key: Callable[[Downloadable], str] = lambda d: str(d.output),
) -> List[int]:
    """
    查找目标路径重复的下载项

    Returns:
        需要移除的下标（每组保留第一个），倒序排列便于依次删除
    """
    order = sorted(range(len(items)), key=lambda i: key(items[i]))
    indices = [
        cur for prev, cur in zip(order, order[1:]) if key(items[prev]) == key(items[cur])
    ]
    return sorted(indices, reverse=True)


def _quarantine(path: Path, old_dir: Path) -> bool:
    """把文件移入隔离目录，重名或移动失败时返回 False"""
    dest = old_dir / path.name
    if dest.exists():
        return False
    try:
        shutil.move(str(path), str(dest))
    except OSError as e:
        logger.debug(f"移动 {path.name} 失败: {e}")
        return False
    return True


def _remove(path: Path) -> None:
    try:
        os.remove(path)
    except OSError as e:
        raise CleanError(
            f"删除文件失败: {path}: {e}", context={"path": str(path)}
        ) from e


def clean(
    directory: Union[str, Path],
    to_download: List[Downloadable],
    quarantine: bool = True,
) -> CleanReport:
    """
    清理目录

    - 待下载列表中目标路径重复的项只保留一个
    - 目录中已有的目标文件保留，并从 to_download 中移除
    - .part 文件删除
    - 其他文件移入 .old；quarantine 为 False 或移动失败时删除

    只处理目录下第一层的文件，子目录及 .old 中的内容不受影响。

    Args:
        directory: 被管理的目录，如 <mc_dir>/mods
        to_download: 待下载列表（原地修改）
        quarantine: 是否把过时文件移入 .old

    Raises:
        CleanError: 目录无法读取或文件无法删除
    """
    directory = Path(directory)
    report = CleanReport()

    dupes = find_duplicates(to_download)
    if dupes:
        report.duplicates = [str(to_download.pop(i).output) for i in dupes]
        logger.info(
            f"发现 {len(report.duplicates)} 个重复文件: {', '.join(report.duplicates)}"
        )

    old_dir = directory / QUARANTINE_DIR
    try:
        old_dir.mkdir(parents=True, exist_ok=True)
        entries = [e for e in os.scandir(directory) if e.is_file(follow_symlinks=False)]
    except OSError as e:
        raise CleanError(
            f"无法读取目录 {directory}: {e}", context={"directory": str(directory)}
        ) from e

    for entry in entries:
        path = Path(entry.path)
        index = next(
            (
                i
                for i, item in enumerate(to_download)
                if item.directory == directory.name and item.filename == entry.name
            ),
            None,
        )
        if index is not None:
            # 按文件名判定已是最新，不重新下载
            to_download.pop(index)
            report.kept.append(entry.name)
        elif entry.name.endswith(PART_SUFFIX):
            _remove(path)
            report.deleted.append(entry.name)
        elif quarantine and _quarantine(path, old_dir):
            report.quarantined.append(entry.name)
        else:
            _remove(path)
            report.deleted.append(entry.name)

    logger.debug(
        f"{directory.name}: 保留 {len(report.kept)}，隔离 {len(report.quarantined)}，"
        f"删除 {len(report.deleted)}"
    )
    return report
