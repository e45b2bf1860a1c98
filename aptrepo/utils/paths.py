"""
路径工具

提供路径处理相关的工具函数。
"""

import os
import re
from pathlib import Path
from typing import Union

# 发行版、组件和架构名称允许的字符集
SAFE_NAME_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9._+~-]*$')


def expand_path(path: Union[str, Path]) -> Path:
    """扩展路径（处理环境变量和用户目录）

    Args:
        path: 原始路径

    Returns:
        Path: 扩展后的绝对路径
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)

    return Path(path).resolve()


def ensure_directory(path: Union[str, Path]) -> Path:
    """确保目录存在（已存在时不报错）

    Args:
        path: 目录路径

    Returns:
        Path: 目录路径
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def relative_posix(path: Union[str, Path], root: Union[str, Path]) -> str:
    """计算相对于 root 的路径，统一使用正斜杠

    Raises:
        ValueError: path 不在 root 之下
    """
    return Path(path).relative_to(Path(root)).as_posix()


def is_safe_name(name: str) -> bool:
    """检查名称是否可安全用作仓库目录名"""
    return bool(name) and SAFE_NAME_PATTERN.match(name) is not None


def validate_name(kind: str, name: str) -> str:
    """验证名称，不合法时抛出 ValueError"""
    if not is_safe_name(name):
        raise ValueError(f"{kind} 名称不合法: {name!r}（仅允许字母、数字和 . _ + ~ -，且必须以字母或数字开头）")
    return name


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"
