"""
控制段落单元测试
"""

import pytest

from aptrepo.build.control import (
    COMPONENT_RELEASE_FIELDS,
    DISTRIBUTION_RELEASE_FIELDS,
    ControlField,
    StanzaError,
    build_stanza,
    parse_stanza,
    serialize_stanza,
)


class TestBuildStanza:
    """build_stanza 测试"""

    def test_schema_order(self):
        stanza = build_stanza(COMPONENT_RELEASE_FIELDS, {
            "Architecture": "amd64",
            "Label": "Main component",
            "Component": "main",
            "Origin": "Unknown",
        })
        assert list(stanza.keys()) == ["Component", "Origin", "Label", "Architecture"]

    def test_optional_fields_omitted(self):
        stanza = build_stanza(COMPONENT_RELEASE_FIELDS, {
            "Component": "main",
            "Architecture": "amd64",
            "Archive": None,
            "Version": "",
        })
        assert "Archive" not in stanza
        assert "Version" not in stanza

    def test_missing_mandatory(self):
        with pytest.raises(StanzaError, match="Architecture"):
            build_stanza(COMPONENT_RELEASE_FIELDS, {"Component": "main"})

    def test_newline_in_single_line_field(self):
        with pytest.raises(StanzaError):
            build_stanza(COMPONENT_RELEASE_FIELDS, {"Component": "main\nother", "Architecture": "amd64"})

    def test_unknown_fields_appended(self):
        schema = (ControlField("First", mandatory=True),)
        stanza = build_stanza(schema, {"Zulu": "z", "First": "1", "Alpha": "a"})
        assert list(stanza.keys()) == ["First", "Zulu", "Alpha"]

    def test_multiline_formatting(self):
        schema = (ControlField("Description", multiline=True),)
        stanza = build_stanza(schema, {"Description": "Summary\nfirst line\n\nsecond"})
        assert stanza.dump() == "Description: Summary\n first line\n .\n second\n"

    def test_leading_newline_block(self):
        schema = (ControlField("SHA1", mandatory=True, multiline=True),)
        stanza = build_stanza(schema, {"SHA1": "\n abc 1 main/binary-amd64/Packages"})
        assert stanza.dump() == "SHA1:\n abc 1 main/binary-amd64/Packages\n"

    def test_distribution_schema_mandatory(self):
        mandatory = [f.name for f in DISTRIBUTION_RELEASE_FIELDS if f.mandatory]
        assert mandatory == ["Codename", "Date", "Components", "MD5Sum", "SHA1", "SHA256"]


class TestParseAndSerialize:
    """解析与序列化测试"""

    def test_parse_preserves_order_and_multiline(self):
        data = b"Package: hello\nVersion: 1.0\nDescription: greeting\n a friendly program\n"
        stanza = parse_stanza(data)

        assert list(stanza.keys()) == ["Package", "Version", "Description"]
        assert stanza["package"] == "hello"
        assert stanza["Description"].splitlines()[1].strip() == "a friendly program"

    def test_serialize_plain_mapping(self):
        text = serialize_stanza({"Package": "hello", "Version": "1.0"})
        assert text == "Package: hello\nVersion: 1.0\n"

    def test_serialize_parsed_stanza(self):
        data = "Package: hello\nDescription: greeting\n a friendly program\n"
        assert serialize_stanza(parse_stanza(data.encode())) == data
