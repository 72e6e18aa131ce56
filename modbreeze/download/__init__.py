"""
ModBreeze 下载层

包含目录清理与并发下载管理。
"""

from modbreeze.download.cleaner import CleanReport, clean, find_duplicates
from modbreeze.download.manager import DownloadManager, DownloadStats

__all__ = [
    "DownloadManager",
    "DownloadStats",
    "CleanReport",
    "clean",
    "find_duplicates",
]
