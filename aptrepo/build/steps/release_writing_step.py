"""
Release 写入步骤模块

为每个发行版写入带校验块的 Release 文件，必须在索引写入步骤之后执行。
"""

from ...utils.logging import info, success, debug, error, LogStage
from aptrepo.build.build_context import BuildContext, BuildError
from aptrepo.build.control import StanzaError
from aptrepo.build.digests import DigestError
from aptrepo.build.release import ReleaseError, format_utc_timestamp
from .build_step import BuildStep


class ReleaseWritingStep(BuildStep):
    """发行版 Release 写入步骤"""

    def __init__(self):
        super().__init__("release", "写入发行版 Release 文件")

    def get_progress_range(self) -> tuple[int, int]:
        return (90, 100)

    def execute(self, context: BuildContext) -> None:
        distributions = context.config.distributions
        info(f"写入 Release 文件 - 时间: {format_utc_timestamp(context.build_time)}", stage=LogStage.RELEASE)

        for i, dist in enumerate(distributions):
            self.report(context, i / len(distributions), f"发行版: {dist.name}")
            try:
                path = context.writer.write_distribution_release(dist, context.build_time)
            except (OSError, StanzaError, DigestError, ReleaseError, ValueError) as e:
                error(f"写入 Release 失败: {e}", stage=LogStage.RELEASE)
                raise BuildError(f"写入发行版 {dist.name} 的 Release 失败: {e}") from e
            context.release_files.append(path)
            debug(f"Release 大小: {path.stat().st_size} bytes", stage=LogStage.RELEASE)

        self.report(context, 1.0, "Release 写入完成")
        success(f"Release 写入完成 - 发行版数: {len(distributions)}", stage=LogStage.RELEASE)
