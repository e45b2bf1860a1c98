"""
预检步骤模块

在写入任何文件之前检查源目录与目标目录，然后创建仓库根目录。
"""

from pathlib import Path

from ...utils import ensure_directory
from ...utils.logging import info, debug, error, LogStage
from aptrepo.build.build_context import BuildContext, BuildError
from aptrepo.build.pool import POOL_DIR
from aptrepo.build.release import DISTS_DIR
from .build_step import BuildStep


class PreflightStep(BuildStep):
    """预检步骤"""

    def __init__(self):
        super().__init__("preflight", "检查源目录和目标目录")

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 5)

    def check(self, context: BuildContext) -> None:
        """只做检查，不产生任何输出

        Raises:
            BuildError: 目标目录已存在，或源目录不存在/不是目录
        """
        config = context.config
        target_dir = Path(config.target_dir)
        source_dir = Path(config.source_dir)

        if target_dir.exists():
            raise BuildError(f"目标目录必须不存在: {target_dir}")

        if not source_dir.is_dir():
            raise BuildError(f"源目录必须存在且是目录: {source_dir}")

        if not config.architectures:
            raise BuildError("必须至少配置一个架构")

    def execute(self, context: BuildContext) -> None:
        info("预检源目录和目标目录", stage=LogStage.INIT)
        self.check(context)

        target_dir = context.target_dir
        try:
            ensure_directory(target_dir / POOL_DIR)
            ensure_directory(target_dir / DISTS_DIR)
        except OSError as e:
            error(f"创建目标目录失败: {e}", stage=LogStage.INIT)
            raise BuildError(f"创建目标目录失败 {target_dir}: {e}") from e

        self.report(context, 1.0, f"目标目录: {target_dir}")
        debug(f"架构: {' '.join(context.config.architectures)}", stage=LogStage.INIT)
        debug(
            "发行版: " + ", ".join(
                f"{dist.name}[{' '.join(c.name for c in dist.components)}]"
                for dist in context.config.distributions
            ),
            stage=LogStage.INIT,
        )
