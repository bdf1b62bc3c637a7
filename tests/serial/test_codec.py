from __future__ import annotations

import pytest

from dbreplace.errors import ParseError
from dbreplace.serial import codec
from dbreplace.serial.nodes import Scalar, ScalarKind, Sequence, Struct


@pytest.mark.parametrize(
    "value",
    [
        "N;",
        "b:0;",
        "b:1;",
        "i:-42;",
        "i:007;",
        "d:0.1;",
        "d:-INF;",
        "d:NAN;",
        "d:1.0E+25;",
        's:0:"";',
        's:5:"café";',
        's:7:"a";b:1;";',
        "a:0:{}",
        'a:2:{i:0;s:1:"a";i:1;s:1:"b";}',
        'a:2:{s:3:"url";s:20:"http://example.dev/a";s:5:"count";i:3;}',
        'O:8:"stdClass":1:{s:3:"foo";s:3:"bar";}',
        'O:8:"stdClass":0:{}',
        'a:1:{s:4:"self";O:8:"stdClass":2:{s:1:"x";r:2;s:1:"y";R:2;}}',
        'a:1:{i:5;a:1:{i:0;a:1:{s:1:"k";d:2.5;}}}',
    ],
)
def test_round_trip_is_lossless(value: str) -> None:
    assert codec.encode(codec.decode(value)) == value


def test_decodes_sequence_with_key_kinds() -> None:
    node = codec.decode('a:2:{i:0;s:1:"a";s:3:"key";b:1;}')

    assert node == Sequence(
        (
            (Scalar(ScalarKind.INTEGER, "0"), Scalar(ScalarKind.STRING, "a")),
            (Scalar(ScalarKind.STRING, "key"), Scalar(ScalarKind.BOOLEAN, "1")),
        )
    )


def test_decodes_struct() -> None:
    node = codec.decode('O:8:"stdClass":1:{s:3:"foo";N;}')

    assert isinstance(node, Struct)
    assert node.type_name == "stdClass"
    assert node.entries == ((Scalar.string("foo"), Scalar(ScalarKind.NULL, "")),)


def test_string_length_counts_bytes_not_characters() -> None:
    node = codec.decode('s:6:"naïve";')
    assert node == Scalar.string("naïve")


def test_encode_recomputes_byte_length_of_changed_string() -> None:
    node = Sequence(((Scalar.integer(0), Scalar.string("naïve café")),))
    assert codec.encode(node) == 'a:1:{i:0;s:12:"naïve café";}'


def test_string_payload_may_contain_delimiters() -> None:
    node = codec.decode('s:9:"a:1:{}";}";')
    assert node == Scalar.string('a:1:{}";}')


@pytest.mark.parametrize(
    "value",
    [
        "",
        "hello world",
        "x:1;",
        's:5:"abc";',
        's:05:"hello";',
        's:-1:"";',
        "i:5;trailing",
        "i:five;",
        "b:2;",
        "a:1:{}",
        "a:0:{i:0;N;}",
        "a:1:{b:1;i:1;}",
        'a:1:{i:0;s:1:"a";',
        'O:8:"stdClass":1:{s:1:"a";N;',
        "N",
    ],
)
def test_rejects_malformed_input(value: str) -> None:
    with pytest.raises(ParseError):
        codec.decode(value)


def test_deep_nesting_does_not_hit_recursion_limit() -> None:
    depth = 5000
    value = "a:1:{i:0;" * depth + 's:3:"foo";' + "}" * depth

    node = codec.decode(value)

    assert codec.encode(node) == value


@pytest.mark.parametrize(
    "value, expected",
    [
        ('a:1:{i:0;s:1:"a";}', True),
        ("i:5;", True),
        ('O:8:"stdClass":0:{}', True),
        ("a:0:{}", False),
        ('s:3:"foo";', False),
        ("http://example.dev", False),
    ],
)
def test_looks_serialized(value: str, expected: bool) -> None:
    assert codec.looks_serialized(value) is expected
