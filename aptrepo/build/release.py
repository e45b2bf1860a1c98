"""
索引与 Release 文件写入

每个发行版分两个阶段写入：
1. 对每个 组件 × 架构（非空桶）写 Packages、Packages.gz 和组件 Release；
2. 写发行版 Release，其中的校验块引用第 1 阶段生成的文件。
第 2 阶段依赖第 1 阶段文件的最终内容，顺序不能颠倒。
"""

import gzip
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

from ..config.schema import ComponentModel, DistributionModel, RepositoryConfig
from ..utils.logging import LogStage, debug, info
from ..utils.paths import ensure_directory, relative_posix
from .control import (
    COMPONENT_RELEASE_FIELDS,
    DISTRIBUTION_RELEASE_FIELDS,
    build_stanza,
)
from .digests import RELEASE_DIGESTS, DigestAlgorithm, digest_file
from .index import PackageIndex, PackageRecord

DISTS_DIR = "dists"
PACKAGES_FILE = "Packages"
PACKAGES_GZ_FILE = "Packages.gz"
RELEASE_FILE = "Release"

# 发行版 Release 校验块中每个 binary-<arch> 目录列出的文件，顺序固定
INDEX_FILES = (PACKAGES_FILE, PACKAGES_GZ_FILE, RELEASE_FILE)

SIZE_WIDTH = 20

_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class ReleaseError(Exception):
    """索引或 Release 文件写入失败"""
    pass


def format_utc_timestamp(instant: datetime) -> str:
    """格式化为 RFC 1123 风格的 UTC 时间，例如 ``Wed, 02 Oct 2024 10:00:00 UTC``

    不依赖 locale；naive datetime 视为 UTC。
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    utc = instant.astimezone(timezone.utc)
    return (
        f"{_DAY_NAMES[utc.weekday()]}, {utc.day:02d} {_MONTH_NAMES[utc.month - 1]} "
        f"{utc.year:04d} {utc.hour:02d}:{utc.minute:02d}:{utc.second:02d} UTC"
    )


def checksum_line(digest: str, size: int, path: str) -> str:
    return f" {digest} {size:>{SIZE_WIDTH}} {path}"


def render_packages(records: Iterable[PackageRecord]) -> bytes:
    """序列化 Packages 文件：段落之间以空行分隔"""
    return "\n".join(record.to_stanza() for record in records).encode('utf-8')


def write_gzip(path: Path, data: bytes) -> Path:
    """写入 gzip 文件；mtime 固定为 0 且不记录文件名，保证输出可重现"""
    with open(path, 'wb') as raw:
        with gzip.GzipFile(filename='', mode='wb', fileobj=raw, mtime=0) as gz:
            gz.write(data)
    return path


class ReleaseWriter:
    """dists 目录写入器"""

    def __init__(self, config: RepositoryConfig, digests: Sequence[DigestAlgorithm] = RELEASE_DIGESTS):
        self.config = config
        self.digests = tuple(digests)
        self.dists_root = Path(config.target_dir).absolute() / DISTS_DIR
        self._indexed: Set[str] = set()

    def distribution_dir(self, distribution: DistributionModel) -> Path:
        return self.dists_root / distribution.name

    def binary_dir(self, distribution: DistributionModel, component: ComponentModel, architecture: str) -> Path:
        return self.distribution_dir(distribution) / component.name / f"binary-{architecture}"

    def write_package_list(
        self,
        distribution: DistributionModel,
        component: ComponentModel,
        architecture: str,
        records: Sequence[PackageRecord],
    ) -> List[Path]:
        """写入一个 组件/架构 的 Packages、Packages.gz 和 Release"""
        directory = ensure_directory(self.binary_dir(distribution, component, architecture))

        packages_path = directory / PACKAGES_FILE
        info(f"Writing: {packages_path}", stage=LogStage.INDEX)
        data = render_packages(records)
        packages_path.write_bytes(data)

        gz_path = directory / PACKAGES_GZ_FILE
        debug(f"Compressing: {packages_path}", stage=LogStage.INDEX)
        write_gzip(gz_path, data)

        release_path = self.write_component_release(component, architecture, directory)
        return [packages_path, gz_path, release_path]

    def write_component_release(self, component: ComponentModel, architecture: str, directory: Path) -> Path:
        release_path = directory / RELEASE_FILE
        info(f"Writing: {release_path}", stage=LogStage.INDEX)

        origin = component.distribution.origin if component.distribution is not None else None
        stanza = build_stanza(COMPONENT_RELEASE_FIELDS, {
            "Component": component.name,
            "Architecture": architecture,
            "Label": component.label,
            "Origin": origin,
        })
        release_path.write_bytes(stanza.dump().encode('utf-8'))
        return release_path

    def write_distribution_indices(self, distribution: DistributionModel, index: PackageIndex) -> List[Path]:
        """第 1 阶段：写入发行版下所有非空的 组件/架构 索引"""
        written: List[Path] = []
        ensure_directory(self.distribution_dir(distribution))

        for component in distribution.components:
            for architecture in self.config.architectures:
                records = index.records(component, architecture)
                if not records:
                    continue
                written.extend(self.write_package_list(distribution, component, architecture, records))

        self._indexed.add(distribution.name)
        return written

    def checksum_block(self, distribution: DistributionModel, algorithm: DigestAlgorithm) -> str:
        """生成一个算法的校验块

        以空行开始；对每个 组件 × 架构 依次检查 Packages、Packages.gz、Release，
        文件存在才输出一行。
        """
        dist_dir = self.distribution_dir(distribution)
        lines = []

        for component in distribution.components:
            for architecture in self.config.architectures:
                directory = self.binary_dir(distribution, component, architecture)
                for name in INDEX_FILES:
                    path = directory / name
                    if not path.is_file():
                        continue
                    lines.append(checksum_line(
                        digest_file(path, algorithm),
                        path.stat().st_size,
                        relative_posix(path, dist_dir),
                    ))

        return "".join("\n" + line for line in lines)

    def write_distribution_release(self, distribution: DistributionModel, timestamp: Optional[datetime] = None) -> Path:
        """第 2 阶段：写入发行版 Release

        Raises:
            ReleaseError: 该发行版的索引尚未写入
        """
        if distribution.name not in self._indexed:
            raise ReleaseError(f"发行版 {distribution.name} 的索引尚未写入，不能生成 Release")

        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        values = {
            "Codename": distribution.name,
            "Origin": distribution.origin,
            "Label": distribution.label,
            "Description": distribution.description,
            "Components": " ".join(component.name for component in distribution.components),
            "Architectures": " ".join(self.config.architectures),
            "Date": format_utc_timestamp(timestamp),
        }
        for algorithm in self.digests:
            values[algorithm.field_name] = self.checksum_block(distribution, algorithm)

        release_path = self.distribution_dir(distribution) / RELEASE_FILE
        info(f"Writing: {release_path}", stage=LogStage.RELEASE)

        stanza = build_stanza(DISTRIBUTION_RELEASE_FIELDS, values)
        release_path.write_bytes(stanza.dump().encode('utf-8'))
        return release_path
