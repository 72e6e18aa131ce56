"""
CLI 模块

命令行接口实现。
"""

import asyncio
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from modbreeze import __version__
from modbreeze.config_manager import ConfigManager
from modbreeze.models import BreezeConfig, ModSide
from modbreeze.orchestrator import ModBreezeOrchestrator
from modbreeze.services.pack_loader import is_url, load_pack
from modbreeze.exceptions import ModBreezeError, SourceError
from modbreeze.logger import setup_logger

SIDE_CHOICE = click.Choice(
    ["client", "server", "all", "c", "s", "a", "common"], case_sensitive=False
)


def get_source(file: Optional[str], url: Optional[str]) -> Optional[str]:
    """从 --file/--url 得到整合包来源"""
    if file and url:
        raise click.UsageError("--file 与 --url 不能同时使用")
    if file:
        return str(Path(file).resolve())
    if url:
        if not is_url(url):
            raise click.BadParameter(f"不是有效的 URL: {url}", param_hint="--url")
        return url
    return None


def set_mc_dir(config: BreezeConfig, directory: str) -> Path:
    """创建并记录 Minecraft 根目录"""
    path = Path(directory).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    path = path.resolve()
    logger.info(f"设置 Minecraft 目录: {path}")
    config.mc_dir = str(path)
    return path


def _load(ctx: click.Context) -> BreezeConfig:
    try:
        return ctx.obj.load()
    except ModBreezeError as e:
        raise click.ClickException(str(e))


async def run_upgrade(
    config: BreezeConfig,
    source: str,
    mc_dir: Path,
    side: ModSide,
    resourcepacks: bool,
    shaderpacks: bool,
    dry_run: bool,
):
    """异步运行"""
    pack = await load_pack(source)
    orchestrator = ModBreezeOrchestrator(
        pack,
        mc_dir,
        side=side,
        resourcepacks=resourcepacks,
        shaderpacks=shaderpacks,
        config=config,
    )
    return await orchestrator.run(dry_run=dry_run)


@click.group()
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.option(
    "--config-file",
    type=click.Path(dir_okay=False),
    help="配置文件路径（默认使用用户配置目录）",
)
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, debug: bool, config_file: Optional[str]):
    """ModBreeze - Minecraft 整合包同步工具"""
    setup_logger(debug=debug)
    ctx.obj = ConfigManager(Path(config_file) if config_file else None)


@main.command()
@click.option("-f", "--file", type=click.Path(exists=True, dir_okay=False), help="整合包定义文件")
@click.option("-u", "--url", help="整合包定义 URL")
@click.pass_context
def source(ctx: click.Context, file: Optional[str], url: Optional[str]):
    """设置整合包来源"""
    config = _load(ctx)
    new_source = get_source(file, url)
    if new_source is None:
        raise click.ClickException(str(SourceError("未指定整合包文件或 URL")))
    config.source = new_source
    ctx.obj.save(config)
    logger.info(f"整合包来源已设置为 {new_source}")


@main.command("config")
@click.option("-d", "--dir", "directory", type=click.Path(file_okay=False), help="Minecraft 根目录")
@click.option("-s", "--side", type=SIDE_CHOICE, help="下载哪一端的模组")
@click.pass_context
def config_command(ctx: click.Context, directory: Optional[str], side: Optional[str]):
    """配置 CLI"""
    config = _load(ctx)
    if directory:
        set_mc_dir(config, directory)
    if side:
        config.side = ModSide.from_str(side)
    ctx.obj.save(config)
    click.echo(f"Minecraft 目录: {config.mc_dir or '(未设置)'}")
    click.echo(f"默认端: {config.side.value}")
    click.echo(f"整合包来源: {config.source or '(未设置)'}")


@main.command()
@click.option("-s", "--side", type=SIDE_CHOICE, help="下载哪一端的模组")
@click.option("-f", "--file", type=click.Path(exists=True, dir_okay=False), help="整合包定义文件")
@click.option("-u", "--url", help="整合包定义 URL")
@click.option("-d", "--dir", "directory", type=click.Path(file_okay=False), help="Minecraft 根目录")
@click.option("--resourcepacks", is_flag=True, help="同时下载资源包")
@click.option("--shaderpacks", is_flag=True, help="同时下载光影包")
@click.option("--dry-run", is_flag=True, help="干运行模式（只解析和清理，不下载）")
@click.pass_context
def upgrade(
    ctx: click.Context,
    side: Optional[str],
    file: Optional[str],
    url: Optional[str],
    directory: Optional[str],
    resourcepacks: bool,
    shaderpacks: bool,
    dry_run: bool,
):
    """同步模组"""
    config = _load(ctx)

    pack_source = get_source(file, url)
    if pack_source is not None:
        config.source = pack_source
    elif config.source is None:
        raise click.ClickException(str(SourceError("未指定整合包文件或 URL")))

    if directory:
        mc_dir = set_mc_dir(config, directory)
    elif config.mc_dir:
        mc_dir = Path(config.mc_dir)
        logger.info(f"使用配置中的 Minecraft 目录: {mc_dir}")
    else:
        mc_dir = set_mc_dir(config, click.prompt("Minecraft 根目录"))

    if side:
        config.side = ModSide.from_str(side)

    ctx.obj.save(config)

    try:
        to_download = asyncio.run(
            run_upgrade(
                config,
                config.source,
                mc_dir,
                config.side,
                resourcepacks,
                shaderpacks,
                dry_run,
            )
        )
    except ModBreezeError as e:
        logger.error(f"同步失败: {e}")
        raise click.ClickException(str(e))

    if dry_run:
        for downloadable in to_download:
            click.echo(str(downloadable.output))


if __name__ == "__main__":
    main()
