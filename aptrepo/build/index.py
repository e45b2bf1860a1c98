"""
软件包索引

PackageRecord 是写入 Packages 文件的一条记录；PackageIndex 按
(组件, 架构) 分桶保存记录，保留发现顺序。
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..config.schema import ARCH_ALL, ComponentModel
from .control import serialize_stanza

BucketKey = Tuple[ComponentModel, str]


def _set_field(items: Dict[str, str], key: str, value: str) -> None:
    """大小写不敏感地设置字段，已存在时保留原位置"""
    for existing in items:
        if existing.lower() == key.lower():
            del items[existing]
            break
    items[key] = value


@dataclass(frozen=True, eq=False)
class PackageRecord:
    """Packages 文件中的一条记录

    fields 为只读映射：控制文件中的原始字段（保持顺序）后接
    Filename、Size 与各摘要字段。记录在多个架构桶之间共享，不做复制。
    """
    fields: Mapping[str, str]
    source_path: Optional[Path] = None

    @classmethod
    def create(
        cls,
        control: Mapping[str, str],
        filename: str,
        size: int,
        digests: Mapping[str, str],
        source_path: Optional[Path] = None,
    ) -> 'PackageRecord':
        items: Dict[str, str] = {}
        for key, value in control.items():
            items[key] = value

        _set_field(items, "Filename", filename)
        _set_field(items, "Size", str(size))
        for key, value in digests.items():
            _set_field(items, key, value)

        return cls(fields=MappingProxyType(items), source_path=source_path)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        for existing, value in self.fields.items():
            if existing.lower() == key.lower():
                return value
        return default

    @property
    def name(self) -> Optional[str]:
        return self.get("Package")

    @property
    def architecture(self) -> Optional[str]:
        return self.get("Architecture")

    @property
    def filename(self) -> Optional[str]:
        return self.get("Filename")

    @property
    def size(self) -> int:
        return int(self.get("Size", "0"))

    def to_stanza(self) -> str:
        return serialize_stanza(self.fields)


class PackageIndex:
    """按 (组件, 架构) 分桶的索引上下文

    register 是唯一修改桶内容的方法；add 实现架构展开规则：
    Architecture 为 all 的包登记到每个配置的架构，其它包只登记到自身架构，
    架构未配置时静默丢弃。
    """

    def __init__(self, architectures: Sequence[str]):
        self._architectures = tuple(architectures)
        self._buckets: Dict[BucketKey, List[PackageRecord]] = {}

    @property
    def architectures(self) -> Tuple[str, ...]:
        return self._architectures

    def register(self, component: ComponentModel, architecture: str, record: PackageRecord) -> None:
        self._buckets.setdefault((component, architecture), []).append(record)

    def target_architectures(self, record: PackageRecord) -> List[str]:
        arch = record.architecture
        if arch == ARCH_ALL:
            return list(self._architectures)
        if arch in self._architectures:
            return [arch]
        return []

    def add(self, component: ComponentModel, record: PackageRecord) -> List[str]:
        """登记记录，返回实际登记到的架构列表"""
        targets = self.target_architectures(record)
        for arch in targets:
            self.register(component, arch, record)
        return targets

    def records(self, component: ComponentModel, architecture: str) -> Tuple[PackageRecord, ...]:
        return tuple(self._buckets.get((component, architecture), ()))

    def buckets(self) -> Iterator[Tuple[BucketKey, Tuple[PackageRecord, ...]]]:
        for key, records in self._buckets.items():
            yield key, tuple(records)

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key: object) -> bool:
        return key in self._buckets
