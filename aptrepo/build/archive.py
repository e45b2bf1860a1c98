"""
软件包归档读取

从 .deb 文件中提取控制信息：外层是 ar 归档，其中的 control.tar.* 成员
是压缩的 tar 包，包内的 ./control 文件即为控制段落。
找不到控制信息时返回 None（该包会被跳过），归档损坏则抛出 ArchiveError。
"""

import io
import os
import tarfile
import zlib
from pathlib import Path
from typing import Iterable, List, Optional, Union

from debian.arfile import ArError, ArFile
from debian.deb822 import Deb822

from .control import parse_stanza

# 外层成员名 -> tarfile 打开模式，按出现顺序匹配第一个
CONTROL_MEMBERS = {
    "control.tar.gz": "r:gz",
    "control.tar.xz": "r:xz",
    "control.tar": "r:",
}

CONTROL_FILE_NAMES = ("./control", "control")

DEFAULT_EXTENSIONS = (".deb",)


class ArchiveError(Exception):
    """归档读取失败"""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


def is_candidate(path: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> bool:
    """可读的普通文件且扩展名匹配"""
    suffixes = tuple(ext.lower() for ext in extensions)
    return (
        path.name.lower().endswith(suffixes)
        and path.is_file()
        and os.access(path, os.R_OK)
    )


def discover_archives(source_dir: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> List[Path]:
    """列出源目录中的候选软件包（不递归），按文件名排序"""
    extensions = list(extensions)
    return sorted(
        (entry for entry in source_dir.iterdir() if is_candidate(entry, extensions)),
        key=lambda p: p.name,
    )


class ArchiveReader:
    """.deb 控制信息读取器"""

    def read(self, path: Union[str, Path]) -> Optional[Deb822]:
        """读取控制信息

        Args:
            path: .deb 文件路径

        Returns:
            Optional[Deb822]: 控制段落，找不到控制成员或控制文件时为 None

        Raises:
            ArchiveError: 归档格式错误或读取失败
        """
        path = Path(path)
        try:
            return self._read(path)
        except ArchiveError:
            raise
        except (ArError, OSError, EOFError, tarfile.TarError, zlib.error, ValueError) as e:
            raise ArchiveError(f"读取软件包失败 {path}: {e}", path) from e

    def _read(self, path: Path) -> Optional[Deb822]:
        archive = ArFile(str(path))

        for member in archive.getmembers():
            mode = CONTROL_MEMBERS.get(member.name)
            if mode is None:
                continue

            try:
                data = member.read()
            finally:
                member.close()

            return self._read_control_tar(data, mode)

        return None

    def _read_control_tar(self, data: bytes, mode: str) -> Optional[Deb822]:
        with tarfile.open(fileobj=io.BytesIO(data), mode=mode) as tar:
            for entry in tar:
                if entry.name not in CONTROL_FILE_NAMES or not entry.isfile():
                    continue
                extracted = tar.extractfile(entry)
                if extracted is None:
                    return None
                return parse_stanza(extracted.read())
        return None
