"""Category Value Types — validated wrappers around untrusted wire strings.

Invariants:
    - Every parse() either returns a typed value or raises ValidationError(field, rule)
    - parse() is pure: no IO, no store access (uniqueness belongs to the repository)
    - Optional types return None for missing/blank input via parse_optional()

Design Decisions:
    - Frozen dataclasses over NewType: validation must run on construction,
      NewType cannot enforce it
    - Rule ids are short stable strings (required, max_length, charset, ...)
      so callers can match on them without parsing messages
"""

import re
from dataclasses import dataclass
from typing import ClassVar, TypeVar

from ledger_backend.core.errors import ValidationError

CODE_MAX_LENGTH = 32
NAME_MAX_LENGTH = 100
SLUG_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
ICON_MAX_LENGTH = 100

_CODE_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
_SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
_HEX_PATTERN = re.compile(r"^[0-9A-Fa-f]{6}$")

T = TypeVar("T", bound="_TextValue")


def _as_text(raw: object, field: str) -> str:
    if raw is None:
        raise ValidationError(field, "required", f"{field} is required")
    if not isinstance(raw, str):
        raise ValidationError(field, "type", f"{field} must be a string")
    return raw.strip()


def _check_length(value: str, field: str, limit: int) -> None:
    if len(value) > limit:
        raise ValidationError(
            field, "max_length",
            f"{field} must be at most {limit} characters (got {len(value)})",
        )


@dataclass(frozen=True)
class _TextValue:
    """Shared shape: a single validated string."""
    value: str

    field: ClassVar[str] = "value"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse_optional(cls: type[T], raw: object) -> T | None:
        """None or blank input means "absent"."""
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        return cls.parse(raw)

    @classmethod
    def parse(cls: type[T], raw: object) -> T:
        raise NotImplementedError


@dataclass(frozen=True)
class CategoryCode(_TextValue):
    """Short business key, unique case-insensitively."""
    field: ClassVar[str] = "code"

    @classmethod
    def parse(cls, raw: object) -> "CategoryCode":
        value = _as_text(raw, cls.field)
        if not value:
            raise ValidationError(cls.field, "required", "code cannot be empty")
        _check_length(value, cls.field, CODE_MAX_LENGTH)
        if not _CODE_PATTERN.match(value):
            raise ValidationError(
                cls.field, "charset",
                f"code may only contain letters, digits, '.', '_' and '-' (got '{value}')",
            )
        return cls(value)

    @property
    def casefold_key(self) -> str:
        return self.value.lower()


@dataclass(frozen=True)
class CategoryName(_TextValue):
    field: ClassVar[str] = "name"

    @classmethod
    def parse(cls, raw: object) -> "CategoryName":
        value = _as_text(raw, cls.field)
        if not value:
            raise ValidationError(cls.field, "required", "name cannot be empty")
        _check_length(value, cls.field, NAME_MAX_LENGTH)
        return cls(value)


@dataclass(frozen=True)
class UrlSlug(_TextValue):
    """Lowercase ASCII, digits and single inner hyphens."""
    field: ClassVar[str] = "slug"

    @classmethod
    def parse(cls, raw: object) -> "UrlSlug":
        value = _as_text(raw, cls.field)
        if not value:
            raise ValidationError(cls.field, "required", "slug cannot be empty")
        _check_length(value, cls.field, SLUG_MAX_LENGTH)
        if not _SLUG_PATTERN.match(value):
            raise ValidationError(
                cls.field, "charset",
                f"slug may only contain lowercase letters, digits and '-' (got '{value}')",
            )
        if value.startswith("-") or value.endswith("-"):
            raise ValidationError(
                cls.field, "hyphen_edge",
                f"slug cannot start or end with a hyphen (got '{value}')",
            )
        if "--" in value:
            raise ValidationError(
                cls.field, "hyphen_run",
                f"slug cannot contain consecutive hyphens (got '{value}')",
            )
        return cls(value)


@dataclass(frozen=True)
class HexColor(_TextValue):
    """#RRGGBB, stored upper-case. Format only, no gamut checks."""
    field: ClassVar[str] = "color"

    @classmethod
    def parse(cls, raw: object) -> "HexColor":
        value = _as_text(raw, cls.field)
        if len(value) != 7:
            raise ValidationError(
                cls.field, "length",
                f"color must be exactly 7 characters like '#RRGGBB' (got '{value}')",
            )
        if not value.startswith("#"):
            raise ValidationError(
                cls.field, "prefix", f"color must start with '#' (got '{value}')",
            )
        if not _HEX_PATTERN.match(value[1:]):
            raise ValidationError(
                cls.field, "hex_digits",
                f"color must contain six hexadecimal digits after '#' (got '{value}')",
            )
        return cls(value.upper())

    def components(self) -> tuple[int, int, int]:
        return (
            int(self.value[1:3], 16),
            int(self.value[3:5], 16),
            int(self.value[5:7], 16),
        )


@dataclass(frozen=True)
class Description(_TextValue):
    field: ClassVar[str] = "description"

    @classmethod
    def parse(cls, raw: object) -> "Description":
        value = _as_text(raw, cls.field)
        _check_length(value, cls.field, DESCRIPTION_MAX_LENGTH)
        return cls(value)


@dataclass(frozen=True)
class Icon(_TextValue):
    field: ClassVar[str] = "icon"

    @classmethod
    def parse(cls, raw: object) -> "Icon":
        value = _as_text(raw, cls.field)
        _check_length(value, cls.field, ICON_MAX_LENGTH)
        return cls(value)
