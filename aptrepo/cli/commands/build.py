"""
Build 命令实现

构建 APT 仓库的核心命令。
"""

import traceback
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from ...config import ConfigError, ConfigValidationError, config_loader, load_config
from ...config.schema import RepositoryConfig
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()


def _config_from_options(
    source: Optional[str],
    target: Optional[str],
    arch: Optional[List[str]],
    dist: str,
    component: str,
    origin: Optional[str],
    label: Optional[str],
    description: Optional[str],
) -> RepositoryConfig:
    """根据命令行参数组装配置"""
    if not source or not target:
        raise ConfigError("未指定配置文件时必须同时提供 --source 和 --target")

    distribution = {"name": dist, "components": [{"name": component}]}
    if origin is not None:
        distribution["origin"] = origin
    if label is not None:
        distribution["label"] = label
    if description is not None:
        distribution["description"] = description

    data = {
        "source_dir": source,
        "target_dir": target,
        "distributions": [distribution],
    }
    if arch:
        data["architectures"] = list(arch)

    return config_loader.load_from_dict(data, base_path=Path.cwd())


def build_command(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="配置文件路径"),
    source: Optional[str] = typer.Option(None, "--source", "-s", help="存放 .deb 包的源目录"),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="仓库输出目录（必须不存在）"),
    arch: Optional[List[str]] = typer.Option(None, "--arch", "-a", help="仓库架构，可重复指定"),
    dist: str = typer.Option("devel", "--dist", help="发行版代号"),
    component: str = typer.Option("main", "--component", help="组件名称"),
    origin: Optional[str] = typer.Option(None, "--origin", help="Release 的 Origin 字段"),
    label: Optional[str] = typer.Option(None, "--label", help="Release 的 Label 字段"),
    description: Optional[str] = typer.Option(None, "--description", help="Release 的 Description 字段"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """构建 APT 仓库

    从配置文件或命令行参数构建仓库，目标目录必须不存在。

    示例:
        aptrepo build -c repo.yaml
        aptrepo build --source ./debs --target ./repo --arch amd64 --arch i386
    """
    from ...build.builder import Builder

    # 在任何输出前设置日志
    set_log_level(OutputLevel.DEBUG if verbose else OutputLevel.INFO)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError:
            console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")

    try:
        if config:
            console.print(f"[cyan]正在加载配置文件[/cyan]: {config}")
            config_obj = load_config(Path(config))
        else:
            config_obj = _config_from_options(
                source, target, arch, dist, component, origin, label, description
            )
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors())
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {e}")
        raise typer.Exit(1)

    def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
        """进度回调函数，只在详细模式下显示"""
        if verbose and total > 0:
            console.print(f"[blue]{stage}[/blue]: {message} ({current * 100 // total}%)")

    console.print("[cyan]开始构建仓库...[/cyan]")
    try:
        result = Builder().build(config_obj, progress_callback=progress_callback)
    except Exception as e:
        console.print(f"[red]✗ 构建过程中发生意外错误[/red]: {e}")
        if log_file:
            console.print(f"[yellow]详细错误信息:[/yellow]\n{traceback.format_exc()}")
        raise typer.Exit(1)

    if not result.success:
        console.print(f"[red]✗ 构建失败[/red]: {result.error}")
        if log_file:
            console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✓ 仓库构建完成[/green]: {result.target_dir}")
    console.print(f"[blue]已索引软件包[/blue]: {result.packages_indexed}")
    if result.packages_skipped:
        console.print(f"[yellow]已跳过[/yellow]: {result.packages_skipped}")
