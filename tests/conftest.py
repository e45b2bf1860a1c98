"""
测试公共夹具

提供在临时目录中生成 .deb 软件包的工具。
"""

import io
import tarfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pytest

TAR_MODES = {
    "control.tar.gz": "w:gz",
    "control.tar.xz": "w:xz",
    "control.tar": "w",
}


def control_text(package: str, version: str = "1.0", architecture: str = "amd64", **extra: str) -> str:
    """生成控制文件文本"""
    fields = {
        "Package": package,
        "Version": version,
        "Architecture": architecture,
        "Maintainer": "Test Maintainer <test@example.com>",
    }
    fields.update(extra)
    fields.setdefault("Description", f"{package} test package\n  Long description of {package}.")
    return "".join(f"{key}: {value}\n" for key, value in fields.items())


def build_ar(members: List[Tuple[str, bytes]]) -> bytes:
    """生成 ar 归档（dpkg 使用的 common 格式）"""
    out = io.BytesIO()
    out.write(b"!<arch>\n")
    for name, data in members:
        header = f"{name:<16}{0:<12}{0:<6}{0:<6}{'100644':<8}{len(data):<10}`\n"
        out.write(header.encode("ascii"))
        out.write(data)
        if len(data) % 2:
            out.write(b"\n")
    return out.getvalue()


def build_tar(entries: Dict[str, bytes], mode: str = "w:gz") -> bytes:
    out = io.BytesIO()
    with tarfile.open(fileobj=out, mode=mode) as tar:
        for name, data in entries.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return out.getvalue()


def build_deb(
    path: Path,
    control: Optional[Union[str, bytes]] = None,
    control_member: str = "control.tar.gz",
    entry_name: str = "./control",
    payload: bytes = b"payload",
) -> Path:
    """在 path 写入一个最小的 .deb

    control 为 None 时不包含控制成员。
    """
    members = [("debian-binary", b"2.0\n")]
    if control is not None:
        if isinstance(control, str):
            control = control.encode("utf-8")
        members.append((control_member, build_tar({entry_name: control}, TAR_MODES[control_member])))
    members.append(("data.tar.gz", build_tar({"./usr/share/doc/payload": payload})))
    path.write_bytes(build_ar(members))
    return path


@pytest.fixture
def source_dir(tmp_path):
    directory = tmp_path / "debs"
    directory.mkdir()
    return directory


@pytest.fixture
def target_dir(tmp_path):
    return tmp_path / "repo"


@pytest.fixture
def make_deb(source_dir):
    """在源目录中生成软件包：make_deb("hello_1.0_amd64.deb", "hello")"""
    def _make(file_name: str, package: Optional[str] = None, architecture: str = "amd64",
              version: str = "1.0", **kwargs) -> Path:
        control = kwargs.pop("control", None)
        if control is None and package is not None:
            control = control_text(package, version=version, architecture=architecture)
        return build_deb(source_dir / file_name, control, **kwargs)
    return _make
