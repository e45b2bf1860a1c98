"""构建服务模块

提供从 .deb 软件包构建 APT 仓库的核心功能。
"""

from .builder import Builder, BuildResult, build_repository
from .build_context import BuildContext, BuildError
from .build_pipeline import BuildPipeline
from .archive import ArchiveError, ArchiveReader, discover_archives, is_candidate
from .assigner import ComponentAssigner, FirstComponentAssigner
from .control import StanzaError, build_stanza, parse_stanza, serialize_stanza
from .digests import (
    DigestAlgorithm,
    DigestError,
    HashCalculator,
    PACKAGE_DIGESTS,
    RELEASE_DIGESTS,
    digest_fields,
    digest_file,
)
from .index import PackageIndex, PackageRecord
from .pool import PoolError, PoolLayout
from .release import ReleaseError, ReleaseWriter, format_utc_timestamp

__all__ = [
    # 主构建器
    "Builder",
    "BuildResult",
    "BuildContext",
    "BuildError",
    "BuildPipeline",
    "build_repository",

    # 软件包读取
    "ArchiveError",
    "ArchiveReader",
    "discover_archives",
    "is_candidate",

    # 组件分配
    "ComponentAssigner",
    "FirstComponentAssigner",

    # 控制段落
    "StanzaError",
    "build_stanza",
    "parse_stanza",
    "serialize_stanza",

    # 摘要
    "DigestAlgorithm",
    "DigestError",
    "HashCalculator",
    "PACKAGE_DIGESTS",
    "RELEASE_DIGESTS",
    "digest_fields",
    "digest_file",

    # 索引与输出
    "PackageIndex",
    "PackageRecord",
    "PoolError",
    "PoolLayout",
    "ReleaseError",
    "ReleaseWriter",
    "format_utc_timestamp",
]
