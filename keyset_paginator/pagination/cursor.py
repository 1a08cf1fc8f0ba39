"""Opaque cursor tokens for keyset pagination.

A token is URL-safe base64 (unpadded) of compact JSON, one entry per rule::

    [{"k": "created_at", "t": "datetime", "v": "2024-05-01T10:00:00Z"},
     {"k": "id", "t": "int", "v": 7}]

A NULL position omits ``"v"``. With a secret configured the payload is
followed by ``.`` and an HMAC-SHA256 signature.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..config import get_settings
from ..errors.pagination import InvalidCursorError, InvalidRuleError
from .query import Direction
from .rules import CompiledRule, ValueKind


logger = logging.getLogger(__name__)

_ADAPTERS = {kind: TypeAdapter(kind.python_type) for kind in ValueKind}
_KIND_TAGS = {kind.value: kind for kind in ValueKind}
_SIGNATURE_SEPARATOR = "."


class Cursor(BaseModel):
    """Pair of optional boundary tokens.

    ``after`` wins when both are set; neither means the first page.
    """

    after: Optional[str] = Field(default=None, description="Cursor to continue forward from")
    before: Optional[str] = Field(default=None, description="Cursor to continue backward from")

    @property
    def direction(self) -> Direction:
        if self.after is not None:
            return Direction.FORWARD
        if self.before is not None:
            return Direction.BACKWARD
        return Direction.NONE

    @property
    def active(self) -> Optional[str]:
        """The token that drives the current request, if any."""
        return self.after if self.after is not None else self.before


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64decode(text: str) -> bytes:
    padding = 4 - len(text) % 4
    if padding != 4:
        text += "=" * padding
    return base64.urlsafe_b64decode(text.encode("ascii"))


class CursorCodec:
    """Encodes rule values into tokens and back."""

    def __init__(self, secret: Optional[str] = None):
        self._secret = secret.encode("utf-8") if secret else None

    @classmethod
    def from_settings(cls) -> "CursorCodec":
        return cls(secret=get_settings().cursor_secret)

    def _sign(self, payload: str) -> str:
        digest = hmac.new(self._secret, payload.encode("utf-8"), hashlib.sha256).digest()
        return _b64encode(digest)

    def _encode_value(self, rule: CompiledRule, value: Any) -> Tuple[str, Any]:
        if rule.codec is not None:
            return rule.codec.name, rule.codec.encode(value)

        kind = rule.kind or ValueKind.infer(value)
        if kind is None:
            raise InvalidRuleError(
                f"Cannot encode value of type {type(value).__name__} for key '{rule.key}'"
            )
        try:
            return kind.value, _ADAPTERS[kind].dump_python(value, mode="json")
        except (ValueError, TypeError) as e:
            # pydantic's serialization errors are ValueError subclasses
            raise InvalidRuleError(f"Cannot encode value for key '{rule.key}' as {kind.value}: {e}")

    def encode(self, rules: Sequence[CompiledRule], values: Sequence[Any]) -> str:
        """Encode one value per rule into an opaque token.

        Args:
            rules: Compiled rules, in order
            values: Sort-key values, ``None`` for NULL

        Returns:
            URL safe token string

        Raises:
            InvalidRuleError: If arity differs or a value can't be encoded
        """
        if len(rules) != len(values):
            raise InvalidRuleError(f"Expected {len(rules)} cursor values, got {len(values)}")

        entries: List[Dict[str, Any]] = []
        for rule, value in zip(rules, values):
            entry: Dict[str, Any] = {"k": rule.key}
            if value is None:
                entry["t"] = rule.type_tag
            else:
                entry["t"], entry["v"] = self._encode_value(rule, value)
            entries.append(entry)

        try:
            raw = json.dumps(entries, separators=(",", ":"), allow_nan=False)
        except (ValueError, TypeError) as e:
            raise InvalidRuleError(f"Cursor values are not JSON serializable: {e}")

        payload = _b64encode(raw.encode("utf-8"))
        if self._secret is None:
            return payload
        return f"{payload}{_SIGNATURE_SEPARATOR}{self._sign(payload)}"

    def _reject(self, reason: str) -> InvalidCursorError:
        logger.debug(f"Rejected cursor: {reason}")
        return InvalidCursorError()

    def _decode_value(self, rule: CompiledRule, tag: Any, raw: Any) -> Any:
        if rule.codec is not None:
            if tag != rule.codec.name:
                raise self._reject(f"type tag {tag!r} does not match codec {rule.codec.name!r}")
            try:
                return rule.codec.decode(raw)
            except Exception as e:
                raise self._reject(f"custom codec {rule.codec.name!r} failed: {e}")

        kind = _KIND_TAGS.get(tag) if isinstance(tag, str) else None
        if kind is None:
            raise self._reject(f"unknown type tag {tag!r} for key {rule.key!r}")
        if rule.kind is not None and kind is not rule.kind:
            raise self._reject(f"type tag {tag!r} does not match kind {rule.kind.value!r}")
        try:
            return _ADAPTERS[kind].validate_python(raw)
        except ValidationError as e:
            raise self._reject(f"value for key {rule.key!r} is not a valid {kind.value}: {e}")

    def decode(self, token: str, rules: Sequence[CompiledRule]) -> Tuple[Any, ...]:
        """Decode a token into one value per rule.

        NULL positions come back as ``None``.

        Raises:
            InvalidCursorError: If the token is malformed, signed wrongly,
                or disagrees with the rules in arity, keys or types
        """
        if not isinstance(token, str) or not token:
            raise self._reject("empty token")

        payload = token
        if self._secret is not None:
            payload, sep, signature = token.rpartition(_SIGNATURE_SEPARATOR)
            expected = self._sign(payload).encode("ascii")
            if not sep or not hmac.compare_digest(signature.encode("utf-8"), expected):
                raise self._reject("bad signature")

        try:
            entries = json.loads(_b64decode(payload).decode("utf-8"))
        except (ValueError, binascii.Error, UnicodeError) as e:
            # JSONDecodeError is a ValueError
            raise self._reject(f"undecodable payload: {e}")

        if not isinstance(entries, list):
            raise self._reject("payload is not a list")
        if len(entries) != len(rules):
            raise self._reject(f"arity {len(entries)} does not match {len(rules)} rules")

        values = []
        for rule, entry in zip(rules, entries):
            if not isinstance(entry, dict) or entry.get("k") != rule.key:
                raise self._reject(f"entry does not match key {rule.key!r}")
            tag = entry.get("t")
            if "v" not in entry:
                # NULL positions still carry the rule's fixed tag
                if rule.type_tag is not None and tag != rule.type_tag:
                    raise self._reject(f"type tag {tag!r} of NULL does not match {rule.type_tag!r}")
                values.append(None)
                continue
            values.append(self._decode_value(rule, tag, entry["v"]))
        return tuple(values)


def encode_cursor(rules: Sequence[CompiledRule], values: Sequence[Any]) -> str:
    """Encode values with a codec configured from settings."""
    return CursorCodec.from_settings().encode(rules, values)


def decode_cursor(token: str, rules: Sequence[CompiledRule]) -> Tuple[Any, ...]:
    """Decode a token with a codec configured from settings."""
    return CursorCodec.from_settings().decode(token, rules)
