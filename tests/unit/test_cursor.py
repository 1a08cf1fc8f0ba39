"""Tests for the cursor codec."""

import base64
import json
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import patch
from uuid import UUID, uuid4

import pytest

from keyset_paginator.config import Settings
from keyset_paginator.errors import InvalidCursorError, InvalidRuleError
from keyset_paginator.pagination.cursor import (
    Cursor, CursorCodec, decode_cursor, encode_cursor
)
from keyset_paginator.pagination.query import Direction
from keyset_paginator.pagination.rules import (
    CustomCodec, Order, Rule, ValueKind, compile_rules
)


def plan(*rules):
    return compile_rules(rules, Order.DESC)


def raw_payload(token: str):
    """Decode an unsigned token's JSON for inspection."""
    padded = token + "=" * (-len(token) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


def forge(entries) -> str:
    """Build an unsigned token from raw entries."""
    raw = json.dumps(entries).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


class Version:
    """Custom value type with its own equality."""

    def __init__(self, major: int, minor: int):
        self.major = major
        self.minor = minor

    def __eq__(self, other):
        return isinstance(other, Version) and (self.major, self.minor) == (other.major, other.minor)


VERSION_CODEC = CustomCodec(
    name="version",
    encode=lambda v: f"{v.major}.{v.minor}",
    decode=lambda raw: Version(*(int(part) for part in raw.split(".")))
)


class TestCursorModel:
    """Test the Cursor pair."""

    def test_first_page(self):
        """No tokens means first page."""
        cursor = Cursor()
        assert cursor.direction is Direction.NONE
        assert cursor.active is None

    def test_after_wins(self):
        """Forward takes precedence over backward."""
        cursor = Cursor(after="a", before="b")
        assert cursor.direction is Direction.FORWARD
        assert cursor.active == "a"

    def test_before_only(self):
        """Only a before token means backward."""
        cursor = Cursor(before="b")
        assert cursor.direction is Direction.BACKWARD
        assert cursor.active == "b"

    def test_empty_string_is_set(self):
        """An empty parameter still selects a direction."""
        assert Cursor(after="").direction is Direction.FORWARD


class TestRoundTrip:
    """decode(encode(values)) == values."""

    @pytest.mark.parametrize("kind,value", [
        (ValueKind.INTEGER, 42),
        (ValueKind.INTEGER, -(2 ** 40)),
        (ValueKind.FLOAT, 3.25),
        (ValueKind.DECIMAL, Decimal("10.50")),
        (ValueKind.TEXT, "héllo, wörld/?&="),
        (ValueKind.BOOLEAN, False),
        (ValueKind.DATETIME, datetime(2024, 5, 1, 10, 30, 15, 123456, tzinfo=timezone.utc)),
        (ValueKind.DATETIME, datetime(2024, 5, 1, 10, 30)),
        (ValueKind.DATE, date(2024, 2, 29)),
        (ValueKind.UUID, UUID("12345678-1234-5678-1234-567812345678")),
    ])
    def test_declared_kinds(self, codec, kind, value):
        """Every built-in kind survives a round trip."""
        rules = plan(Rule(key="k", kind=kind))

        decoded = codec.decode(codec.encode(rules, [value]), rules)

        assert decoded == (value,)
        assert type(decoded[0]) is type(value)

    def test_inferred_kinds(self, codec):
        """Undeclared kinds are inferred and recorded in the token."""
        rules = plan(Rule(key="created_at"), Rule(key="id"), Rule(key="ref"))
        values = (datetime(2024, 1, 1, tzinfo=timezone.utc), 7, uuid4())

        token = codec.encode(rules, values)

        assert codec.decode(token, rules) == values
        assert [entry["t"] for entry in raw_payload(token)] == ["datetime", "int", "uuid"]

    def test_null_positions(self, codec):
        """NULL positions are tagged absent and decode to None."""
        rules = plan(Rule(key="deleted_at", kind=ValueKind.DATETIME), Rule(key="id"))

        token = codec.encode(rules, [None, 3])

        assert codec.decode(token, rules) == (None, 3)
        assert "v" not in raw_payload(token)[0]

    def test_custom_codec(self, codec):
        """Custom codecs encode and decode their own values."""
        rules = plan(Rule(key="version", codec=VERSION_CODEC), Rule(key="id"))

        token = codec.encode(rules, [Version(2, 11), 4])

        assert codec.decode(token, rules) == (Version(2, 11), 4)
        assert raw_payload(token)[0] == {"k": "version", "t": "version", "v": "2.11"}

    def test_custom_codec_null(self, codec):
        """Custom hooks never see NULLs."""
        rules = plan(Rule(key="version", codec=VERSION_CODEC))
        assert codec.decode(codec.encode(rules, [None]), rules) == (None,)

    def test_signed_round_trip(self, signed_codec):
        """Signed tokens round trip with the same secret."""
        rules = plan(Rule(key="id"))

        token = signed_codec.encode(rules, [5])

        assert "." in token
        assert signed_codec.decode(token, rules) == (5,)

    def test_deterministic(self, codec):
        """Equal tuples give equal tokens."""
        rules = plan(Rule(key="a"), Rule(key="b"))
        assert codec.encode(rules, ["x", 1]) == codec.encode(rules, ["x", 1])

    def test_url_safe(self, codec):
        """Tokens only use URL safe characters."""
        rules = plan(Rule(key="title"))
        token = codec.encode(rules, ["???>>>~~~" * 10])

        assert set(token) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")


class TestEncodeErrors:
    """Server-side encode failures."""

    def test_arity(self, codec):
        """One value per rule."""
        with pytest.raises(InvalidRuleError):
            codec.encode(plan(Rule(key="a"), Rule(key="b")), [1])

    def test_unsupported_value(self, codec):
        """Values of unknown kinds can't be encoded."""
        with pytest.raises(InvalidRuleError):
            codec.encode(plan(Rule(key="a")), [object()])


class TestDecodeErrors:
    """Client-side decode failures are InvalidCursorError."""

    @pytest.fixture
    def rules(self):
        return plan(Rule(key="created_at", kind=ValueKind.DATETIME), Rule(key="id", kind=ValueKind.INTEGER))

    @pytest.fixture
    def token(self, codec, rules):
        return codec.encode(rules, [datetime(2024, 1, 1, tzinfo=timezone.utc), 7])

    @pytest.mark.parametrize("bad", ["", "!!!", "not-base64-json", "e30", "bnVsbA"])
    def test_malformed(self, codec, rules, bad):
        """Garbage, non-list JSON and empty tokens are rejected."""
        with pytest.raises(InvalidCursorError):
            codec.decode(bad, rules)

    def test_truncated(self, codec, rules, token):
        """Truncated tokens are rejected."""
        with pytest.raises(InvalidCursorError):
            codec.decode(token[:-6], rules)

    def test_arity_mismatch(self, codec, rules):
        """Tokens for a different number of rules are rejected."""
        short = codec.encode(plan(Rule(key="created_at", kind=ValueKind.DATETIME)),
                             [datetime(2024, 1, 1, tzinfo=timezone.utc)])
        with pytest.raises(InvalidCursorError):
            codec.decode(short, rules)

    def test_key_mismatch(self, codec, rules):
        """Tokens for other keys are rejected."""
        other = forge([{"k": "updated_at", "t": "datetime", "v": "2024-01-01T00:00:00Z"},
                       {"k": "id", "t": "int", "v": 7}])
        with pytest.raises(InvalidCursorError):
            codec.decode(other, rules)

    def test_kind_tag_mismatch(self, codec, rules):
        """Declared kinds must match the token's tags."""
        other = forge([{"k": "created_at", "t": "datetime", "v": "2024-01-01T00:00:00Z"},
                       {"k": "id", "t": "str", "v": "7"}])
        with pytest.raises(InvalidCursorError):
            codec.decode(other, rules)

    def test_unconvertible_value(self, codec, rules):
        """Values must convert to the rule's kind."""
        other = forge([{"k": "created_at", "t": "datetime", "v": "yesterday"},
                       {"k": "id", "t": "int", "v": 7}])
        with pytest.raises(InvalidCursorError):
            codec.decode(other, rules)

    def test_unknown_tag(self, codec):
        """Unknown tags are rejected for undeclared kinds."""
        token = forge([{"k": "id", "t": "pickle", "v": "x"}])
        with pytest.raises(InvalidCursorError):
            codec.decode(token, plan(Rule(key="id")))

    def test_custom_codec_failure(self, codec):
        """Custom decode errors become invalid cursors."""
        rules = plan(Rule(key="version", codec=VERSION_CODEC))
        token = forge([{"k": "version", "t": "version", "v": "two.eleven"}])
        with pytest.raises(InvalidCursorError):
            codec.decode(token, rules)

    def test_custom_codec_any_exception(self, codec):
        """Any exception from a decode hook is an invalid cursor."""
        ref_codec = CustomCodec(name="uuidhex", encode=lambda v: v.hex, decode=lambda raw: UUID(raw))
        rules = plan(Rule(key="id", codec=ref_codec))
        token = forge([{"k": "id", "t": "uuidhex", "v": 5}])

        with pytest.raises(InvalidCursorError):
            codec.decode(token, rules)

    def test_null_with_wrong_tag(self, codec):
        """NULL positions must carry the rule's fixed tag."""
        rules = plan(Rule(key="version", codec=VERSION_CODEC), Rule(key="id", kind=ValueKind.INTEGER))

        with pytest.raises(InvalidCursorError):
            codec.decode(forge([{"k": "version", "t": "bogus"}, {"k": "id", "t": "int", "v": 1}]), rules)
        with pytest.raises(InvalidCursorError):
            codec.decode(forge([{"k": "version", "t": "version", "v": "1.0"}, {"k": "id", "t": "str"}]), rules)

    def test_null_with_inferred_kind(self, codec):
        """Rules without a fixed kind accept any NULL tag."""
        rules = plan(Rule(key="id"))
        assert codec.decode(forge([{"k": "id", "t": None}]), rules) == (None,)

    def test_unsigned_token_rejected_by_signed_codec(self, codec, signed_codec, rules, token):
        """A signing codec rejects unsigned tokens."""
        with pytest.raises(InvalidCursorError):
            signed_codec.decode(token, rules)

    def test_tampered_token(self, signed_codec, rules):
        """Changing the payload invalidates the signature."""
        token = signed_codec.encode(rules, [datetime(2024, 1, 1, tzinfo=timezone.utc), 7])
        payload, signature = token.split(".")
        forged = forge([{"k": "created_at", "t": "datetime", "v": "2030-01-01T00:00:00Z"},
                        {"k": "id", "t": "int", "v": 1}])

        with pytest.raises(InvalidCursorError):
            signed_codec.decode(f"{forged}.{signature}", rules)

    def test_other_secret(self, signed_codec, rules):
        """Tokens signed with another secret are rejected."""
        token = CursorCodec(secret="other").encode(rules, [datetime(2024, 1, 1, tzinfo=timezone.utc), 7])
        with pytest.raises(InvalidCursorError):
            signed_codec.decode(token, rules)

    def test_message_is_generic(self, codec, rules):
        """The error never describes token internals."""
        other = forge([{"k": "created_at", "t": "datetime", "v": "yesterday"},
                       {"k": "id", "t": "int", "v": 7}])
        with pytest.raises(InvalidCursorError) as exc_info:
            codec.decode(other, rules)

        assert exc_info.value.detail == "Invalid cursor"
        assert exc_info.value.status == 400
        assert "created_at" not in str(exc_info.value)


class TestSettingsCodec:
    """Module helpers use settings."""

    def test_helpers_use_secret(self):
        """encode_cursor/decode_cursor sign with the configured secret."""
        rules = plan(Rule(key="id"))
        with patch("keyset_paginator.pagination.cursor.get_settings",
                   return_value=Settings(cursor_secret="s3cret")):
            token = encode_cursor(rules, [1])
            assert decode_cursor(token, rules) == (1,)

        with pytest.raises(InvalidCursorError):
            CursorCodec().decode(token, rules)
