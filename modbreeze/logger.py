"""
日志模块

基于 loguru。每条日志带有所属的同步阶段（resolve / clean / download），
调试模式下额外输出时间和调用位置。
"""

import os
import sys
from typing import Optional

from loguru import logger

DEBUG_ENV = "MODBREEZE_DEBUG"
NO_STAGE = "-"

_FORMAT = "<level>{level: <8}</level> | <cyan>{extra[stage]: <8}</cyan> | {message}"
_DEBUG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[stage]: <8}</cyan> | {name}:{line} | {message}"
)


def debug_enabled(debug: bool = False) -> bool:
    """--debug 或环境变量 MODBREEZE_DEBUG=1 时开启调试"""
    return debug or os.environ.get(DEBUG_ENV, "0") == "1"


def setup_logger(
    debug: bool = False,
    sink=sys.stdout,
    colorize: Optional[bool] = None,
) -> str:
    """
    设置日志记录器

    Args:
        debug: 是否启用调试输出
        sink: 输出目标
        colorize: 是否启用颜色，None 时由 loguru 根据终端判断

    Returns:
        实际使用的日志级别
    """
    verbose = debug_enabled(debug)
    level = "DEBUG" if verbose else "INFO"

    logger.remove()
    logger.configure(extra={"stage": NO_STAGE})
    logger.add(
        sink,
        format=_DEBUG_FORMAT if verbose else _FORMAT,
        level=level,
        colorize=colorize,
        backtrace=verbose,
        diagnose=verbose,
    )

    if verbose:
        logger.debug("DEBUG 模式已启用")
    return level


def stage(name: str):
    """标记一个同步阶段，块内（包括其中创建的任务）的日志都会带上阶段名"""
    return logger.contextualize(stage=name)


__all__ = ["logger", "setup_logger", "stage", "debug_enabled"]
