"""
Pool 目录布局

软件包在仓库中的存放位置为
pool/<组件>/<包名首字母>/<包名>/<原始文件名>。
"""

import shutil
from pathlib import Path
from typing import Union

from ..config.schema import ComponentModel
from ..utils.paths import ensure_directory, is_safe_name, relative_posix

POOL_DIR = "pool"


class PoolError(Exception):
    """Pool 路径计算或复制失败"""
    pass


class PoolLayout:
    """Pool 布局与复制"""

    def __init__(self, target_dir: Union[str, Path]):
        self.target_dir = Path(target_dir).absolute()
        self.pool_root = self.target_dir / POOL_DIR

    def target_path(self, component: ComponentModel, package_name: str, original_file_name: str) -> Path:
        """计算软件包在 pool 中的绝对路径

        Raises:
            PoolError: 包名或文件名不能安全地用作路径
        """
        if not is_safe_name(package_name):
            raise PoolError(f"包名不能用作 pool 路径: {package_name!r}")
        if not original_file_name or Path(original_file_name).name != original_file_name:
            raise PoolError(f"文件名不合法: {original_file_name!r}")

        return self.pool_root / component.name / package_name[0] / package_name / original_file_name

    def relative_filename(self, path: Path) -> str:
        """相对仓库根目录的路径（正斜杠分隔），即 Packages 中的 Filename 字段"""
        return relative_posix(path, self.target_dir)

    def copy(self, source: Path, target: Path) -> Path:
        """复制软件包到 pool，覆盖已存在的文件并保留文件属性

        Raises:
            PoolError: 复制失败
        """
        try:
            ensure_directory(target.parent)
            shutil.copy2(source, target)
        except OSError as e:
            raise PoolError(f"复制软件包失败 {source} -> {target}: {e}") from e
        return target
