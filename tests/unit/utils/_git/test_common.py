from datetime import UTC, datetime, timedelta

import pytest

from gitmeta.utils._git import (
    branch_ref,
    decode_bytes,
    parse_identity,
    strip_refs_heads,
    tag_ref,
    to_datetime,
)


class TestDecodeBytes:
    def test_decodes_utf8(self) -> None:
        assert decode_bytes("café".encode()) == "café"

    def test_passes_strings_through(self) -> None:
        assert decode_bytes("main") == "main"

    def test_replaces_invalid_bytes(self) -> None:
        assert decode_bytes(b"bad\xff") == "bad�"


class TestRefNames:
    @pytest.mark.parametrize(
        ("ref", "expected"),
        [
            (b"refs/heads/main", "main"),
            ("refs/heads/feature/x", "feature/x"),
            ("main", "main"),
            (None, None),
        ],
    )
    def test_strip_refs_heads(
        self, ref: bytes | str | None, expected: str | None
    ) -> None:
        assert strip_refs_heads(ref) == expected

    def test_branch_ref(self) -> None:
        assert branch_ref("feature/x") == b"refs/heads/feature/x"

    def test_tag_ref(self) -> None:
        assert tag_ref("v1.0") == b"refs/tags/v1.0"


class TestParseIdentity:
    def test_name_and_email(self) -> None:
        assert parse_identity(b"Jane Doe <jane@example.com>") == (
            "Jane Doe",
            "jane@example.com",
        )

    def test_angle_bracket_in_name(self) -> None:
        assert parse_identity(b"A <b> C <c@example.com>") == (
            "A <b> C",
            "c@example.com",
        )

    def test_without_email(self) -> None:
        assert parse_identity(b"Just A Name") == ("Just A Name", "")


class TestToDatetime:
    def test_utc(self) -> None:
        result = to_datetime(1_700_000_000)

        assert result == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
        assert result.utcoffset() == timedelta(0)

    def test_offset_east_of_utc(self) -> None:
        result = to_datetime(1_700_000_000, 2 * 3600)

        assert result.utcoffset() == timedelta(hours=2)
        assert result.hour == 0
        assert result.timestamp() == 1_700_000_000

    def test_offset_west_of_utc(self) -> None:
        result = to_datetime(1_700_000_000, -5 * 3600)

        assert result.utcoffset() == timedelta(hours=-5)
        assert result.hour == 17
