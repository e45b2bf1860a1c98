"""
控制段落（stanza）的字段表与通用序列化

Packages 和 Release 文件都是 Debian 控制格式（deb822）的键值段落。
底层解析与输出交给 python-debian 的 Deb822；这里用数据驱动的字段表
描述每种文件的字段顺序、必填项以及是否允许多行。
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from debian.deb822 import Deb822


class StanzaError(ValueError):
    """段落内容不符合字段表"""
    pass


@dataclass(frozen=True)
class ControlField:
    """字段定义"""
    name: str
    mandatory: bool = False
    multiline: bool = False


COMPONENT_RELEASE_FIELDS: Tuple[ControlField, ...] = (
    ControlField("Archive"),
    ControlField("Version"),
    ControlField("Component", mandatory=True),
    ControlField("Origin"),
    ControlField("Label"),
    ControlField("Architecture", mandatory=True),
)

DISTRIBUTION_RELEASE_FIELDS: Tuple[ControlField, ...] = (
    ControlField("Origin"),
    ControlField("Label"),
    ControlField("Codename", mandatory=True),
    ControlField("Date", mandatory=True),
    ControlField("Architectures"),
    ControlField("Components", mandatory=True),
    ControlField("Description", multiline=True),
    ControlField("MD5Sum", mandatory=True, multiline=True),
    ControlField("SHA1", mandatory=True, multiline=True),
    ControlField("SHA256", mandatory=True, multiline=True),
)


def _format_multiline(value: str) -> str:
    """保证续行以空格开头，空行写作 ' .'"""
    lines = value.split("\n")
    formatted = [lines[0]]
    for line in lines[1:]:
        if not line.strip():
            formatted.append(" .")
        elif line[0] in (" ", "\t"):
            formatted.append(line)
        else:
            formatted.append(" " + line)
    return "\n".join(formatted)


def build_stanza(schema: Sequence[ControlField], values: Mapping[str, Optional[str]]) -> Deb822:
    """按字段表顺序构建段落

    未出现在字段表中的键按原顺序追加在末尾。值为 None 或空串的可选字段被省略。

    Raises:
        StanzaError: 缺少必填字段，或单行字段含有换行
    """
    stanza = Deb822()
    known = set()

    for field in schema:
        known.add(field.name.lower())
        value = values.get(field.name)
        if value is None:
            if field.mandatory:
                raise StanzaError(f"缺少必填字段: {field.name}")
            continue
        value = str(value)
        if not value and not field.mandatory:
            continue
        if "\n" in value:
            if not field.multiline:
                raise StanzaError(f"字段 {field.name} 不允许多行内容")
            value = _format_multiline(value)
        stanza[field.name] = value

    for key, value in values.items():
        if key.lower() in known or value is None:
            continue
        stanza[key] = str(value)

    return stanza


def parse_stanza(data: bytes) -> Deb822:
    """解析单个控制段落"""
    return Deb822(data.decode('utf-8', errors='replace').splitlines())


def stanza_from_items(items: Iterable[Tuple[str, str]]) -> Deb822:
    """按给定顺序构建段落，不做字段表校验"""
    stanza = Deb822()
    for key, value in items:
        stanza[key] = value
    return stanza


def serialize_stanza(stanza: Mapping[str, str]) -> str:
    """输出段落文本（以换行结尾，不含段落间空行）"""
    if not isinstance(stanza, Deb822):
        stanza = stanza_from_items(stanza.items())
    return stanza.dump()
