"""
下载管理器

并发执行下载任务，统计总进度；任一文件最终下载失败时，
等所有任务结束后抛出第一个错误。
"""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Union

import aiohttp
import aiofiles
from loguru import logger

from modbreeze.download.cleaner import PART_SUFFIX
from modbreeze.models import Downloadable
from modbreeze.exceptions import (
    DownloadError,
    DownloadFileError,
    DownloadNetworkError,
)

ProgressCallback = Callable[[int, int], None]
Transfer = Callable[[str, Path, str, Callable[[int], None]], Awaitable[None]]


@dataclass
class DownloadStats:
    """下载统计"""

    total: int = 0
    completed: int = 0
    failed: int = 0
    bytes_total: int = 0
    bytes_downloaded: int = 0


class ProgressTracker:
    """汇总所有并发下载的字节进度，每 5% 输出一次日志"""

    def __init__(
        self,
        stats: DownloadStats,
        callback: Optional[ProgressCallback] = None,
        step: float = 5.0,
    ):
        self.stats = stats
        self.callback = callback
        self.step = step
        self._last_percent = 0.0

    def advance(self, delta: int):
        self.stats.bytes_downloaded += delta
        if self.callback:
            self.callback(self.stats.bytes_downloaded, self.stats.bytes_total)
        if self.stats.bytes_total <= 0:
            return
        # 元数据中的文件大小可能与实际不符
        percent = min(self.stats.bytes_downloaded / self.stats.bytes_total * 100, 100.0)
        if percent - self._last_percent >= self.step:
            self._last_percent = percent
            logger.info(
                f"[进度] {self.stats.bytes_downloaded / (1024 * 1024):.2f}/"
                f"{self.stats.bytes_total / (1024 * 1024):.2f} MB ({percent:.1f}%)"
            )


def count_bytes(downloadables: List[Downloadable]) -> int:
    """计算下载总字节数"""
    return sum(d.length for d in downloadables)


class DownloadManager:
    """下载管理器"""

    def __init__(
        self,
        max_concurrent: int = 75,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: Optional[aiohttp.ClientSession] = None,
        progress_callback: Optional[ProgressCallback] = None,
        transfer: Optional[Transfer] = None,
    ):
        self.max_concurrent = max_concurrent
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.stats = DownloadStats()
        self._session = session
        self._owned_session = session is None
        self._progress_callback = progress_callback
        self._transfer = transfer or self.download_file
        self._failed_downloads: List[str] = []

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owned_session = True
        return self._session

    async def download_file(
        self,
        url: str,
        download_dir: Path,
        filename: str,
        on_progress: Callable[[int], None],
    ) -> None:
        """
        下载单个文件

        先写入 <filename>.part，完成后重命名，失败时不会留下同名的目标文件。

        Raises:
            DownloadError: 重试后仍然失败
        """
        file_path = Path(download_dir) / filename
        part_path = file_path.with_name(filename + PART_SUFFIX)

        # 重试时只上报超出之前已上报部分的字节，进度不回退也不重复计数
        reported = 0
        for attempt in range(self.max_retries + 1):
            received = 0
            try:
                async with self.session.get(url) as response:
                    if response.status != 200:
                        raise DownloadNetworkError(
                            f"HTTP {response.status}: {url}",
                            context={"url": url, "status": response.status},
                        )

                    async with aiofiles.open(part_path, "wb") as f:
                        async for chunk in response.content.iter_chunked(8192):
                            await f.write(chunk)
                            received += len(chunk)
                            if received > reported:
                                on_progress(received - reported)
                                reported = received

                os.replace(part_path, file_path)
                logger.debug(f"[完成] '{filename}' 下载完成")
                return

            except (aiohttp.ClientError, asyncio.TimeoutError, OSError, DownloadError) as e:
                # 清理不完整的文件
                if part_path.exists():
                    try:
                        os.remove(part_path)
                    except OSError:
                        pass

                if attempt < self.max_retries:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        f"[重试] 下载 '{filename}' 失败 (第 {attempt + 1} 次): {e}. "
                        f"{delay:.1f}s 后重试..."
                    )
                    await asyncio.sleep(delay)
                    continue

                if isinstance(e, DownloadError):
                    raise
                if isinstance(e, OSError):
                    raise DownloadFileError(
                        f"写入文件失败: {file_path}: {e}",
                        context={"url": url, "path": str(file_path)},
                    ) from e
                raise DownloadNetworkError(
                    f"下载失败: {url}: {str(e) or type(e).__name__}",
                    context={"url": url},
                ) from e

    async def execute(
        self, output_dir: Union[str, Path], to_download: List[Downloadable]
    ) -> DownloadStats:
        """
        并发下载全部文件

        所有任务结束后，如果有失败则抛出第一个失败的错误；不会中途取消其他任务。

        Args:
            output_dir: Minecraft 根目录
            to_download: 待下载列表（相对路径）
        """
        output_dir = Path(output_dir)
        self.stats = DownloadStats(
            total=len(to_download), bytes_total=count_bytes(to_download)
        )
        self._failed_downloads = []
        tracker = ProgressTracker(self.stats, self._progress_callback)
        semaphore = asyncio.Semaphore(self.max_concurrent)
        failures: List[BaseException] = []

        logger.info(
            f"[启动] 开始下载 {self.stats.total} 个文件 "
            f"({self.stats.bytes_total / (1024 * 1024):.2f} MB)，"
            f"最大并发数: {self.max_concurrent}"
        )

        async def run(downloadable: Downloadable):
            async with semaphore:
                destination = output_dir / downloadable.output
                try:
                    destination.parent.mkdir(parents=True, exist_ok=True)
                    await self._transfer(
                        downloadable.download_url,
                        destination.parent,
                        destination.name,
                        tracker.advance,
                    )
                except Exception as e:
                    self.stats.failed += 1
                    self._failed_downloads.append(str(downloadable.output))
                    logger.error(f"[错误] 下载 '{downloadable.filename}' 失败: {e}")
                    failures.append(e)
                    return
                self.stats.completed += 1

        try:
            await asyncio.gather(*(run(d) for d in to_download))
        finally:
            await self.close()

        if failures:
            raise failures[0]

        logger.success(f"[完成] {self.stats.completed} 个文件下载完成")
        return self.stats

    def get_stats(self) -> DownloadStats:
        """获取下载统计"""
        return self.stats

    def get_failed(self) -> List[str]:
        """获取失败的下载列表"""
        return self._failed_downloads.copy()

    async def close(self):
        """关闭 session"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
