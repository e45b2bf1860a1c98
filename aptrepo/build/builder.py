"""
构建器主类

负责整个仓库构建流程的协调，使用管道模式组织构建步骤。
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, List

from ..config.schema import RepositoryConfig
from .assigner import ComponentAssigner
from .build_context import BuildContext, BuildError, ProgressCallback
from .build_pipeline import BuildPipeline


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    target_dir: Optional[Path] = None
    packages_indexed: int = 0
    packages_skipped: int = 0
    build_time: Optional[float] = None
    error: Optional[str] = None
    context: Optional[BuildContext] = None


class Builder:
    """仓库构建器

    使用管道模式协调构建步骤，提供统一的构建接口。
    """

    def __init__(self, assigner: Optional[ComponentAssigner] = None):
        """初始化构建器

        Args:
            assigner: 组件分配策略，None 时使用默认策略
        """
        self.assigner = assigner
        self.pipeline = BuildPipeline()

    def build(
        self,
        config: RepositoryConfig,
        progress_callback: Optional[ProgressCallback] = None,
        build_time: Optional[datetime] = None,
    ) -> BuildResult:
        """构建仓库

        失败时不抛出异常，而是返回 success=False 的结果；已写出的部分文件保留在目标目录中。
        """
        try:
            context = self.pipeline.execute(
                config,
                assigner=self.assigner,
                progress_callback=progress_callback,
                build_time=build_time,
            )
        except BuildError as e:
            return BuildResult(success=False, error=str(e))

        stats = context.build_stats
        return BuildResult(
            success=True,
            target_dir=context.target_dir,
            packages_indexed=stats['packages_indexed'],
            packages_skipped=stats['archives_skipped'],
            build_time=stats['end_time'] - stats['start_time'],
            context=context,
        )

    def get_pipeline(self) -> BuildPipeline:
        """获取构建管道，用于自定义构建流程"""
        return self.pipeline

    def validate_build_pipeline(self) -> List[str]:
        """验证构建管道的完整性"""
        return self.pipeline.validate_pipeline()


def build_repository(
    config: RepositoryConfig,
    assigner: Optional[ComponentAssigner] = None,
    build_time: Optional[datetime] = None,
) -> BuildContext:
    """构建仓库，失败时抛出 BuildError"""
    return BuildPipeline().execute(config, assigner=assigner, build_time=build_time)
