"""
软件包扫描步骤模块

列出源目录中的候选软件包。
"""

from pathlib import Path

from ...utils import format_size
from ...utils.logging import info, success, debug, error, LogStage
from aptrepo.build.archive import discover_archives
from aptrepo.build.build_context import BuildContext, BuildError
from .build_step import BuildStep


class ArchiveScanStep(BuildStep):
    """软件包扫描步骤"""

    def __init__(self):
        super().__init__("scan", "扫描源目录中的软件包")

    def get_progress_range(self) -> tuple[int, int]:
        return (5, 10)

    def execute(self, context: BuildContext) -> None:
        source_dir = Path(context.config.source_dir)
        info(f"扫描软件包: {source_dir}", stage=LogStage.SCAN)

        try:
            archives = discover_archives(source_dir, context.config.extensions)
            total_size = sum(path.stat().st_size for path in archives)
        except OSError as e:
            error(f"扫描源目录失败: {e}", stage=LogStage.SCAN)
            raise BuildError(f"扫描源目录失败 {source_dir}: {e}") from e

        context.archives = archives
        context.build_stats['archives_found'] = len(archives)
        context.build_stats['total_size'] = total_size

        self.report(context, 1.0, f"找到 {len(archives)} 个软件包")
        success("扫描完成", stage=LogStage.SCAN)
        info(f"  软件包数量: {len(archives)}")
        info(f"  总大小: {format_size(total_size)}")

        for idx, path in enumerate(archives[:20]):
            debug(f"软件包[{idx}]: {path.name}", stage=LogStage.SCAN)
        if len(archives) > 20:
            debug(f"... 还有 {len(archives) - 20} 个软件包未列出", stage=LogStage.SCAN)
