"""
组件分配

决定一个软件包进入哪个 (发行版, 组件)。这是路由逻辑唯一的扩展点：
替换实现时必须保证对相同输入总是返回相同的组件，
因为构建流程对每个包会调用两次（生成 Filename 时和决定复制/索引时）。
"""

from abc import ABC, abstractmethod
from typing import Mapping, Optional

from ..config.schema import ComponentModel, RepositoryConfig


class ComponentAssigner(ABC):
    """组件分配器抽象基类"""

    @abstractmethod
    def assign(
        self,
        fields: Optional[Mapping[str, str]],
        config: RepositoryConfig,
    ) -> Optional[ComponentModel]:
        """返回目标组件，返回 None 表示忽略该包

        Args:
            fields: 解析后的控制字段，可能为 None
            config: 冻结后的构建配置
        """
        pass


class FirstComponentAssigner(ComponentAssigner):
    """默认策略：所有包都进入第一个发行版的第一个组件"""

    def assign(
        self,
        fields: Optional[Mapping[str, str]],
        config: RepositoryConfig,
    ) -> Optional[ComponentModel]:
        if fields is None:
            return None
        return config.distributions[0].components[0]
