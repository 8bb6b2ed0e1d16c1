import io

import pytest

from fcshim.common import (
    MAGIC_STUB_BYTES,
    generate_stub_content,
    is_stub_drive,
    parse_stub_content,
)


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"foo", False),
        (b"0" * 512, False),
        (MAGIC_STUB_BYTES + bytes([0xFF]) + b"0" * (0xFF + 1), True),
        (MAGIC_STUB_BYTES + bytes([0xFF]) + b"0" * 0xFF, True),
        (MAGIC_STUB_BYTES + bytes([3, 100, 200, 255]), True),
    ],
    ids=["simple", "lengthy", "valid max_len+1", "valid max_len", "valid"],
)
def test_is_stub_drive(data, expected):
    assert is_stub_drive(io.BytesIO(data)) is expected


def test_is_stub_drive_empty_stream():
    assert is_stub_drive(io.BytesIO(b"")) is False


def test_generate_stub_content():
    drive_id = "foo"
    expected = MAGIC_STUB_BYTES + bytes([len(drive_id)]) + drive_id.encode()
    assert generate_stub_content(drive_id) == expected


def test_generate_stub_content_long_id():
    with pytest.raises(ValueError):
        generate_stub_content("0" * (0xFF + 1))


def test_generate_stub_content_max_length_allowed():
    content = generate_stub_content("0" * 0xFF)
    assert content[len(MAGIC_STUB_BYTES)] == 0xFF


def test_parse_stub_content():
    expected_id = "foo"
    contents = (
        MAGIC_STUB_BYTES
        + bytes([len(expected_id)])
        + expected_id.encode()
        + b"junkcontent"
    )
    assert parse_stub_content(io.BytesIO(contents)) == expected_id


def test_parse_stub_content_empty_stream_raises():
    with pytest.raises(EOFError):
        parse_stub_content(io.BytesIO(b""))


def test_parse_stub_content_missing_size_raises():
    with pytest.raises(EOFError):
        parse_stub_content(io.BytesIO(MAGIC_STUB_BYTES))


def test_stub_id_round_trip():
    expected_id = "foo"
    content = generate_stub_content(expected_id)
    assert is_stub_drive(io.BytesIO(content))
    assert parse_stub_content(io.BytesIO(content)) == expected_id