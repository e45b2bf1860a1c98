"""
Validate 命令实现

验证仓库配置文件的命令。
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ...config import validate_config


console = Console()


def validate_command(
    config: str = typer.Option(..., "--config", "-c", help="配置文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式的结果"),
) -> None:
    """验证配置文件

    检查配置文件的语法以及架构、发行版、组件名称是否合法。

    示例:
        aptrepo validate -c repo.yaml
        aptrepo validate -c repo.yaml --json
    """
    config_path = Path(config)

    if not config_path.exists():
        console.print(f"[red]配置文件不存在: {config_path}[/red]")
        raise typer.Exit(1)

    if not json_output:
        console.print(f"正在验证配置文件: [cyan]{config_path}[/cyan]")

    errors = validate_config(config_path)

    if json_output:
        result = {
            "file": str(config_path),
            "valid": not errors,
            "errors": errors,
            "error_count": len(errors),
        }
        typer.echo(json.dumps(result, ensure_ascii=False, indent=2, default=str))
        if errors:
            raise typer.Exit(1)
        return

    if not errors:
        console.print("[green]✓ 配置文件验证通过[/green]")
        return

    console.print(f"[red]配置文件验证失败 ({len(errors)} 个错误):[/red]")
    console.print()

    table = Table(title="验证错误")
    table.add_column("位置", style="cyan", no_wrap=True)
    table.add_column("错误信息", style="red")
    table.add_column("输入值", style="yellow")

    for error in errors:
        location = " -> ".join(str(item) for item in error.get('loc', []))
        message = error.get('msg', '未知错误')
        input_value = str(error.get('input', ''))
        if len(input_value) > 47:
            input_value = input_value[:47] + "..."

        table.add_row(location or "根级别", message, input_value or "-")

    console.print(table)
    raise typer.Exit(1)
