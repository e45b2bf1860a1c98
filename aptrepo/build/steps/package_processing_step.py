"""
软件包处理步骤模块

对每个软件包：读取控制信息、计算摘要、分配组件、复制到 pool、登记索引。
"""

from pathlib import Path
from typing import Optional

from ...utils.logging import info, success, warning, debug, error, LogStage
from aptrepo.build.archive import ArchiveError, ArchiveReader
from aptrepo.build.build_context import BuildContext, BuildError
from aptrepo.build.digests import PACKAGE_DIGESTS, DigestError, digest_fields
from aptrepo.build.index import PackageRecord
from aptrepo.build.pool import PoolError
from .build_step import BuildStep


class PackageProcessingStep(BuildStep):
    """软件包处理步骤"""

    def __init__(self, reader: Optional[ArchiveReader] = None):
        super().__init__("process", "处理软件包并复制到 pool")
        self.reader = reader or ArchiveReader()

    def get_progress_range(self) -> tuple[int, int]:
        return (10, 70)

    def execute(self, context: BuildContext) -> None:
        info(f"处理 {len(context.archives)} 个软件包", stage=LogStage.READ)

        for i, path in enumerate(context.archives):
            self.report(context, i / max(1, len(context.archives)), f"处理: {path.name}")
            try:
                self.process_archive(context, path)
            except BuildError:
                raise
            except (ArchiveError, PoolError, DigestError, OSError) as e:
                error(f"处理软件包失败: {path}: {e}", stage=LogStage.READ)
                raise BuildError(f"处理软件包失败 {path}: {e}") from e

        self.report(context, 1.0, "软件包处理完成")
        success("软件包处理完成", stage=LogStage.READ)
        info(f"  已复制: {context.build_stats['packages_copied']}")
        info(f"  已索引: {context.build_stats['packages_indexed']}")
        info(f"  已跳过: {context.build_stats['archives_skipped']}")
        if context.build_stats['packages_dropped']:
            info(f"  架构不受支持（未索引）: {context.build_stats['packages_dropped']}")

    def process_archive(self, context: BuildContext, path: Path) -> Optional[PackageRecord]:
        """处理单个软件包

        Returns:
            Optional[PackageRecord]: 生成的记录；没有控制信息或未分配组件时为 None
        """
        control = self.reader.read(path)
        if control is None:
            warning(f"找不到控制信息，跳过: {path.name}", stage=LogStage.READ)
            context.build_stats['archives_skipped'] += 1
            return None

        digests = digest_fields(path, PACKAGE_DIGESTS)

        component = context.assigner.assign(control, context.config)
        if component is None:
            debug(f"未分配组件，跳过: {path.name}", stage=LogStage.READ)
            context.build_stats['archives_skipped'] += 1
            return None

        package_name = control.get("Package")
        if not package_name:
            raise BuildError(f"控制信息缺少 Package 字段: {path}")

        target = context.pool.target_path(component, package_name, path.name)
        record = PackageRecord.create(
            control,
            filename=context.pool.relative_filename(target),
            size=path.stat().st_size,
            digests=digests,
            source_path=path,
        )
        debug(f"Processing: {package_name} {record.get('Version', '')} ({record.architecture})", stage=LogStage.READ)

        if context.assigner.assign(control, context.config) != component:
            raise BuildError(f"组件分配结果不稳定: {path}")

        info(f"Copy artifact: {target}", stage=LogStage.POOL)
        context.pool.copy(path, target)
        context.pool_files.append(target)
        context.build_stats['packages_copied'] += 1

        architectures = context.index.add(component, record)
        if architectures:
            context.build_stats['packages_indexed'] += 1
            debug(f"登记 {package_name} -> {component.name}: {' '.join(architectures)}", stage=LogStage.INDEX)
        else:
            context.build_stats['packages_dropped'] += 1
            debug(f"架构 {record.architecture} 未配置，{package_name} 不写入索引", stage=LogStage.INDEX)

        return record
