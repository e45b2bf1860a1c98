"""
Inspect 命令实现

查看 .deb 软件包控制信息和摘要的命令。
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ...build.archive import ArchiveError, ArchiveReader
from ...build.digests import PACKAGE_DIGESTS, DigestError, digest_fields
from ...utils import format_size


console = Console()


def inspect_command(
    package: str = typer.Argument(..., help=".deb 软件包路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式"),
) -> None:
    """查看软件包信息

    显示 .deb 软件包的控制字段以及写入 Packages 索引时使用的摘要。

    示例:
        aptrepo inspect hello_1.0_amd64.deb
        aptrepo inspect hello_1.0_amd64.deb --json
    """
    package_path = Path(package)

    if not package_path.is_file():
        console.print(f"[red]软件包文件不存在: {package_path}[/red]")
        raise typer.Exit(1)

    try:
        package_data = _read_package_info(package_path)
    except (ArchiveError, DigestError, OSError) as e:
        console.print(f"[red]检查软件包失败: {e}[/red]")
        raise typer.Exit(1)

    if package_data['control'] is None:
        console.print(f"[red]软件包中没有控制信息: {package_path}[/red]")
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps(package_data, ensure_ascii=False, indent=2))
    else:
        _display_package_info(package_data)


def _read_package_info(package_path: Path) -> dict:
    """读取控制字段和摘要"""
    control = ArchiveReader().read(package_path)
    return {
        'file': str(package_path),
        'size': package_path.stat().st_size,
        'control': dict(control) if control is not None else None,
        'digests': dict(digest_fields(package_path, PACKAGE_DIGESTS)),
    }


def _display_package_info(package_data: dict) -> None:
    """显示软件包信息"""
    console.print(f"[bold]软件包[/bold]: {package_data['file']}")
    console.print(f"[bold]大小[/bold]: {format_size(package_data['size'])} ({package_data['size']} bytes)")
    console.print()

    control_table = Table(title="控制字段")
    control_table.add_column("字段", style="cyan", no_wrap=True)
    control_table.add_column("值", style="green")
    for key, value in package_data['control'].items():
        control_table.add_row(key, value)
    console.print(control_table)
    console.print()

    digest_table = Table(title="摘要")
    digest_table.add_column("字段", style="cyan", no_wrap=True)
    digest_table.add_column("值", style="yellow")
    for key, value in package_data['digests'].items():
        digest_table.add_row(key, value)
    console.print(digest_table)
