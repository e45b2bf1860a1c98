"""
构建管道模块

使用管道模式协调构建步骤的执行。
"""

import time
from datetime import datetime
from typing import List, Optional

from ..config.schema import RepositoryConfig
from ..utils import format_size
from ..utils.logging import info, success, debug, error, LogStage
from .assigner import ComponentAssigner, FirstComponentAssigner
from .build_context import BuildContext, BuildError, ProgressCallback
from .steps.build_step import BuildStep
from .steps.preflight_step import PreflightStep
from .steps.archive_scan_step import ArchiveScanStep
from .steps.package_processing_step import PackageProcessingStep
from .steps.index_writing_step import IndexWritingStep
from .steps.release_writing_step import ReleaseWritingStep


class BuildPipeline:
    """构建管道，负责协调构建步骤的执行"""

    def __init__(self):
        self._steps: List[BuildStep] = []
        self._init_default_steps()

    def _init_default_steps(self):
        """初始化默认的构建步骤

        Release 步骤依赖索引步骤写出的文件，顺序不可调换。
        """
        self._steps = [
            PreflightStep(),
            ArchiveScanStep(),
            PackageProcessingStep(),
            IndexWritingStep(),
            ReleaseWritingStep(),
        ]

    def add_step(self, step: BuildStep, position: Optional[int] = None):
        """添加构建步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除构建步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤"""
        return self._steps.copy()

    def execute(
        self,
        config: RepositoryConfig,
        assigner: Optional[ComponentAssigner] = None,
        progress_callback: Optional[ProgressCallback] = None,
        build_time: Optional[datetime] = None,
    ) -> BuildContext:
        """执行构建管道

        Args:
            config: 配置对象，构建开始时会取一份冻结副本
            assigner: 组件分配策略，默认分配到第一个发行版的第一个组件
            progress_callback: 进度回调函数
            build_time: Release 的 Date 字段使用的时间，默认当前 UTC 时间

        Returns:
            BuildContext: 构建上下文，包含所有构建结果

        Raises:
            BuildError: 构建失败
        """
        frozen = config.frozen_copy()
        context = BuildContext(
            config=frozen,
            assigner=assigner or FirstComponentAssigner(),
            progress_callback=progress_callback,
        )
        if build_time is not None:
            context.build_time = build_time

        context.build_stats['start_time'] = time.time()

        try:
            info(f"开始构建仓库: {frozen.source_dir} -> {frozen.target_dir}", stage=LogStage.INIT)
            debug(
                f"构建配置: architectures={','.join(frozen.architectures)} "
                f"distributions={len(frozen.distributions)} extensions={','.join(frozen.extensions)}",
                stage=LogStage.INIT,
            )

            for step in self._steps:
                info(f"执行步骤: {step.description}", stage=LogStage.INIT)
                step.execute(context)

            context.build_stats['end_time'] = time.time()
            elapsed = context.build_stats['end_time'] - context.build_stats['start_time']

            success(f"仓库构建成功: {frozen.target_dir}", stage=LogStage.DONE)
            info(f"构建时间: {elapsed:.1f}秒")
            info(f"软件包: {context.build_stats['packages_indexed']} / {context.build_stats['archives_found']}")
            info(f"总大小: {format_size(context.build_stats['total_size'])}")

            return context

        except BuildError as e:
            context.build_stats['end_time'] = time.time()
            error(f"构建失败: {e}", stage=LogStage.ERROR)
            raise

        except Exception as e:
            context.build_stats['end_time'] = time.time()
            error(f"构建失败: {e}", stage=LogStage.ERROR)
            raise BuildError(f"构建失败: {e}") from e

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("构建管道中没有步骤")
            return errors

        # 进度范围必须从 0 连续覆盖到 100
        prev_end = 0
        for step in self._steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"构建管道的总进度范围不是100%: {prev_end}%")

        return errors
