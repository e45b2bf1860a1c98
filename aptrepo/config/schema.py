"""
配置 Schema 定义

使用 Pydantic 定义仓库构建配置模型，支持验证和类型检查。
名称类字段在模型构造时即完成校验，保证任何文件操作之前发现错误。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from ..utils.paths import validate_name

# 架构无关包的特殊架构名
ARCH_ALL = "all"

DEFAULT_ARCHITECTURES = ["i386", "amd64"]


class ComponentModel(BaseModel):
    """组件模型

    组件挂接到发行版时会生成新的实例，并由发行版设置反向引用；
    因此同一个组件对象可以安全地加入多个发行版。
    组件的身份由 (所属发行版名称, 组件名称) 决定。
    """
    name: str = Field("main", description="组件名称")
    label: str = Field("Main component", description="组件标签")

    _distribution: Optional["DistributionModel"] = PrivateAttr(None)

    model_config = {
        "extra": "forbid",
        "frozen": True,
        "str_strip_whitespace": True,
        "revalidate_instances": "always",
    }

    @field_validator('name')
    @classmethod
    def validate_component_name(cls, v: str) -> str:
        return validate_name("组件", v)

    @property
    def distribution(self) -> Optional["DistributionModel"]:
        """所属发行版（挂接前为 None）"""
        return self._distribution

    def _identity(self) -> tuple:
        dist_name = self._distribution.name if self._distribution is not None else None
        return (dist_name, self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComponentModel):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __str__(self) -> str:
        return self.name


class DistributionModel(BaseModel):
    """发行版模型，身份仅由名称（代号）决定"""
    name: str = Field("devel", description="发行版代号")
    label: str = Field("Development", description="发行版标签")
    origin: str = Field("Unknown", description="仓库来源")
    description: Optional[str] = Field(None, description="发行版描述")
    components: List[ComponentModel] = Field(
        default_factory=lambda: [ComponentModel()],
        description="组件列表",
        min_length=1,
    )

    model_config = {
        "extra": "forbid",
        "frozen": True,
        "str_strip_whitespace": True,
        "revalidate_instances": "always",
    }

    @field_validator('name')
    @classmethod
    def validate_distribution_name(cls, v: str) -> str:
        return validate_name("发行版", v)

    @field_validator('components')
    @classmethod
    def validate_unique_components(cls, v: List[ComponentModel]) -> List[ComponentModel]:
        seen = set()
        for component in v:
            if component.name in seen:
                raise ValueError(f"组件名称重复: {component.name}")
            seen.add(component.name)
        return v

    @model_validator(mode='after')
    def attach_components(self) -> 'DistributionModel':
        """设置组件的反向引用"""
        for component in self.components:
            component._distribution = self
        return self

    def get_component(self, name: str) -> Optional[ComponentModel]:
        for component in self.components:
            if component.name == name:
                return component
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DistributionModel):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        return self.name


class RepositoryConfig(BaseModel):
    """仓库构建主配置模型

    这是整个配置文件的根模型。构建开始时由构建器生成一份冻结副本，
    构建过程中不再变化。
    """
    source_dir: Path = Field(..., description="存放 .deb 包的源目录")
    target_dir: Path = Field(..., description="生成仓库的目标目录（必须不存在）")
    architectures: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ARCHITECTURES),
        description="支持的架构列表",
        min_length=1,
    )
    distributions: List[DistributionModel] = Field(
        default_factory=lambda: [DistributionModel()],
        description="发行版列表",
        min_length=1,
    )
    extensions: List[str] = Field(
        default_factory=lambda: [".deb"],
        description="识别为软件包的文件扩展名",
        min_length=1,
    )

    model_config = {
        "extra": "forbid",
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator('architectures')
    @classmethod
    def validate_architectures(cls, v: List[str]) -> List[str]:
        """验证架构名称，去除重复项并保持顺序"""
        cleaned: List[str] = []
        for arch in v:
            arch = arch.strip()
            validate_name("架构", arch)
            if arch == ARCH_ALL:
                raise ValueError(f"'{ARCH_ALL}' 是架构无关包的特殊标记，不能作为仓库架构")
            if arch not in cleaned:
                cleaned.append(arch)
        return cleaned

    @field_validator('distributions')
    @classmethod
    def validate_unique_distributions(cls, v: List[DistributionModel]) -> List[DistributionModel]:
        seen = set()
        for dist in v:
            if dist.name in seen:
                raise ValueError(f"发行版名称重复: {dist.name}")
            seen.add(dist.name)
        return v

    @field_validator('extensions')
    @classmethod
    def validate_extensions(cls, v: List[str]) -> List[str]:
        cleaned: List[str] = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                raise ValueError("扩展名不能为空")
            if not ext.startswith('.'):
                ext = '.' + ext
            if ext not in cleaned:
                cleaned.append(ext)
        return cleaned

    def frozen_copy(self) -> 'RepositoryConfig':
        """生成一份独立的副本（所有发行版和组件都是新对象）"""
        return type(self).model_validate(self.model_dump())

    def iter_components(self):
        """按配置顺序遍历 (发行版, 组件)"""
        for dist in self.distributions:
            for component in dist.components:
                yield dist, component

    def to_dict(self) -> Dict[str, Any]:
        """转换为可写入 YAML 的字典"""
        return self.model_dump(mode='json', exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RepositoryConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)
