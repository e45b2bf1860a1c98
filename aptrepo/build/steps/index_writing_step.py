"""
索引写入步骤模块

为每个发行版写入 Packages、Packages.gz 和组件 Release 文件。
"""

from ...utils.logging import info, success, error, LogStage
from aptrepo.build.build_context import BuildContext, BuildError
from aptrepo.build.control import StanzaError
from .build_step import BuildStep


class IndexWritingStep(BuildStep):
    """索引写入步骤"""

    def __init__(self):
        super().__init__("index", "写入 Packages 索引")

    def get_progress_range(self) -> tuple[int, int]:
        return (70, 90)

    def execute(self, context: BuildContext) -> None:
        distributions = context.config.distributions
        info("写入 Packages 索引", stage=LogStage.INDEX)

        for i, dist in enumerate(distributions):
            self.report(context, i / len(distributions), f"发行版: {dist.name}")
            try:
                context.index_files.extend(context.writer.write_distribution_indices(dist, context.index))
            except (OSError, StanzaError, ValueError) as e:
                error(f"写入索引失败: {e}", stage=LogStage.INDEX)
                raise BuildError(f"写入发行版 {dist.name} 的索引失败: {e}") from e

        self.report(context, 1.0, f"写入 {len(context.index_files)} 个索引文件")
        success(f"索引写入完成 - 文件数: {len(context.index_files)}", stage=LogStage.INDEX)
