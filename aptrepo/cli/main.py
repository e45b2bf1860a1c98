"""
aptrepo CLI 主入口

提供命令行接口，支持 build/validate/inspect/example/info 等命令。
"""

import sys
from importlib import metadata
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..build.archive import CONTROL_MEMBERS
from ..build.digests import PACKAGE_DIGESTS, RELEASE_DIGESTS
from ..utils import configure_logging
from .commands import build, validate, inspect


# 创建主应用
app = typer.Typer(
    name="aptrepo",
    help="aptrepo - 从 .deb 软件包目录生成 APT 仓库",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"aptrepo v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level="DEBUG" if verbose else "INFO")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    )
) -> None:
    """aptrepo - 从 .deb 软件包目录生成 APT 仓库

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("build", help="构建 APT 仓库")(build.build_command)
app.command("validate", help="验证配置文件")(validate.validate_command)
app.command("inspect", help="查看 .deb 软件包的控制信息")(inspect.inspect_command)


def _distribution_version(name: str) -> str:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return "未安装"


@app.command("info")
def info_command() -> None:
    """显示系统信息"""
    console.print("[bold]aptrepo 系统信息[/bold]")
    console.print()

    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("版本", style="green")

    table.add_row("aptrepo", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    for dist_name in ("python-debian", "pydantic", "ruamel.yaml", "typer", "rich"):
        table.add_row(dist_name, _distribution_version(dist_name))

    console.print(table)
    console.print()

    digest_table = Table(title="摘要算法")
    digest_table.add_column("算法", style="cyan")
    digest_table.add_column("Packages 字段", style="green")
    digest_table.add_column("Release 字段", style="green")

    for package_alg, release_alg in zip(PACKAGE_DIGESTS, RELEASE_DIGESTS):
        digest_table.add_row(package_alg.hash_name, package_alg.field_name, release_alg.field_name)

    console.print(digest_table)
    console.print()
    console.print(f"支持的控制归档: {', '.join(CONTROL_MEMBERS)}")


@app.command("example")
def example_command(
    output: str = typer.Option(
        "example_repo.yaml",
        "--output", "-o",
        help="输出配置文件路径"
    )
) -> None:
    """生成示例配置文件"""
    from ..config import ConfigError, save_config
    from ..config.schema import ComponentModel, DistributionModel, RepositoryConfig

    config = RepositoryConfig(
        source_dir="./debs",
        target_dir="./repo",
        architectures=["amd64", "i386"],
        distributions=[
            DistributionModel(
                name="devel",
                label="Development",
                origin="Example",
                description="示例 APT 仓库",
                components=[ComponentModel(name="main", label="Main component")],
            )
        ],
    )

    try:
        save_config(config, output)
    except ConfigError as e:
        console.print(f"[red]生成示例配置失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例配置文件已生成: [green]{output}[/green]")
    console.print("请根据需要修改配置文件，然后运行:")
    console.print(f"  [cyan]aptrepo build -c {output}[/cyan]")


if __name__ == "__main__":
    app()
