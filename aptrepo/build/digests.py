"""
摘要算法与哈希工具

为 Packages 与 Release 文件计算内容摘要。两张字段表计算方式完全相同，
只是输出的字段名不同：Packages 段落中 MD5 字段写作 ``MD5sum``，
Release 文件的校验块写作 ``MD5Sum``（APT 格式的历史遗留差异）。
"""

import hashlib
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Tuple, Union

CHUNK_SIZE = 64 * 1024


class DigestError(Exception):
    """摘要算法无法解析"""
    pass


@dataclass(frozen=True)
class DigestAlgorithm:
    """命名的摘要算法

    field_name 为输出到索引文件中的字段名，hash_name 为 hashlib 中的算法名。
    """
    field_name: str
    hash_name: str

    def create(self):
        """创建新的哈希对象

        Raises:
            DigestError: 算法不可用
        """
        try:
            return hashlib.new(self.hash_name)
        except (ValueError, TypeError) as e:
            raise DigestError(f"不支持的摘要算法 {self.field_name} ({self.hash_name}): {e}") from e


PACKAGE_DIGESTS: Tuple[DigestAlgorithm, ...] = (
    DigestAlgorithm("MD5sum", "md5"),
    DigestAlgorithm("SHA1", "sha1"),
    DigestAlgorithm("SHA256", "sha256"),
)

RELEASE_DIGESTS: Tuple[DigestAlgorithm, ...] = (
    DigestAlgorithm("MD5Sum", "md5"),
    DigestAlgorithm("SHA1", "sha1"),
    DigestAlgorithm("SHA256", "sha256"),
)


class HashCalculator:
    """哈希计算器，按块读取数据以限制内存占用"""

    def __init__(self, algorithm: DigestAlgorithm):
        self.algorithm = algorithm
        self._hasher = algorithm.create()

    def update(self, data: Union[bytes, str]) -> None:
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._hasher.update(data)

    def update_from_stream(self, stream, chunk_size: int = CHUNK_SIZE) -> None:
        """从流更新哈希

        Args:
            stream: 二进制输入流
            chunk_size: 读取块大小
        """
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            self._hasher.update(chunk)

    def update_from_file(self, file_path: Path, chunk_size: int = CHUNK_SIZE) -> None:
        """从文件更新哈希

        Raises:
            OSError: 文件读取失败
        """
        with open(file_path, 'rb') as f:
            self.update_from_stream(f, chunk_size)

    def hexdigest(self) -> str:
        """获取小写十六进制哈希值"""
        return self._hasher.hexdigest()

    @classmethod
    def hash_data(cls, data: Union[bytes, str], algorithm: DigestAlgorithm) -> str:
        """便捷方法：计算数据哈希"""
        calculator = cls(algorithm)
        calculator.update(data)
        return calculator.hexdigest()

    @classmethod
    def hash_file(cls, file_path: Path, algorithm: DigestAlgorithm) -> str:
        """便捷方法：计算文件哈希"""
        calculator = cls(algorithm)
        calculator.update_from_file(file_path)
        return calculator.hexdigest()


def digest_file(file_path: Path, algorithm: DigestAlgorithm) -> str:
    return HashCalculator.hash_file(file_path, algorithm)


def digest_fields(file_path: Path, algorithms: Iterable[DigestAlgorithm]) -> Dict[str, str]:
    """计算文件的多个摘要

    只读取文件一次，所有算法共享同一个数据块。

    Returns:
        Dict[str, str]: 字段名 -> 十六进制摘要，顺序与 algorithms 一致
    """
    calculators = [HashCalculator(algorithm) for algorithm in algorithms]

    with open(file_path, 'rb') as f:
        while True:
            chunk = f.read(CHUNK_SIZE)
            if not chunk:
                break
            for calculator in calculators:
                calculator.update(chunk)

    return OrderedDict(
        (calculator.algorithm.field_name, calculator.hexdigest()) for calculator in calculators
    )
