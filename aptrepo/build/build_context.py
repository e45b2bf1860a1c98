"""
构建上下文模块

定义构建过程中的共享数据结构和异常类。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..config.schema import RepositoryConfig
from .assigner import ComponentAssigner, FirstComponentAssigner
from .index import PackageIndex
from .pool import PoolLayout
from .release import ReleaseWriter

# 进度回调类型
ProgressCallback = Callable[[str, int, int, str], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BuildContext:
    """构建上下文，包含构建过程中的共享数据

    config 是冻结副本；index 是唯一的索引状态，只通过 PackageIndex.register 修改。
    """
    config: RepositoryConfig
    assigner: ComponentAssigner = field(default_factory=FirstComponentAssigner)
    progress_callback: Optional[ProgressCallback] = None
    build_time: datetime = field(default_factory=_utc_now)

    # 构建过程中生成的数据
    archives: List[Path] = field(default_factory=list)
    pool_files: List[Path] = field(default_factory=list)
    index_files: List[Path] = field(default_factory=list)
    release_files: List[Path] = field(default_factory=list)

    index: PackageIndex = field(init=False)
    pool: PoolLayout = field(init=False)
    writer: ReleaseWriter = field(init=False)

    # 统计信息
    build_stats: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.index = PackageIndex(self.config.architectures)
        self.pool = PoolLayout(self.config.target_dir)
        self.writer = ReleaseWriter(self.config)

        defaults = {
            'start_time': 0,
            'end_time': 0,
            'archives_found': 0,
            'archives_skipped': 0,
            'packages_copied': 0,
            'packages_indexed': 0,
            'packages_dropped': 0,
            'total_size': 0,
        }
        for key, value in defaults.items():
            self.build_stats.setdefault(key, value)

    @property
    def target_dir(self) -> Path:
        return Path(self.config.target_dir)

    def report_progress(self, stage: str, current: int, message: str = "") -> None:
        if self.progress_callback:
            self.progress_callback(stage, current, 100, message)


class BuildError(Exception):
    """构建错误"""
    pass
