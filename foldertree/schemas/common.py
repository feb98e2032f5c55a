"""Schemas shared by folders, files and tags."""

import re
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator

T = TypeVar("T")

_HEX_PATTERN = re.compile(r"^#[0-9a-f]{6}$")


class Visibility(str, Enum):
    PRIVATE = "private"
    SHARED = "shared"
    PUBLIC = "public"


class RGB(BaseModel):
    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)


class ColorInfo(BaseModel):
    """A colour stored as hex plus its RGB components.

    ``rgb`` may be omitted on input; it is derived from ``hex``.
    """
    hex: str
    rgb: RGB
    name: Optional[str] = Field(None, max_length=50)

    @model_validator(mode="before")
    @classmethod
    def derive_rgb(cls, data):
        if isinstance(data, dict) and data.get("rgb") is None and isinstance(data.get("hex"), str):
            value = data["hex"].strip().lower()
            if _HEX_PATTERN.match(value):
                data = {**data, "rgb": {
                    "r": int(value[1:3], 16),
                    "g": int(value[3:5], 16),
                    "b": int(value[5:7], 16),
                }}
        return data

    @field_validator('hex')
    @classmethod
    def normalize_hex(cls, v: str) -> str:
        v = v.strip().lower()
        if not _HEX_PATTERN.match(v):
            raise ValueError("Colour must be a hex string like '#ff4444'")
        return v

    @model_validator(mode="after")
    def rgb_matches_hex(self):
        expected = (int(self.hex[1:3], 16), int(self.hex[3:5], 16), int(self.hex[5:7], 16))
        if (self.rgb.r, self.rgb.g, self.rgb.b) != expected:
            raise ValueError("rgb components do not match hex value")
        return self

    @classmethod
    def from_hex(cls, hex_value: str, name: Optional[str] = None) -> "ColorInfo":
        return cls(hex=hex_value, name=name)


class Page(BaseModel, Generic[T]):
    """One slice of a filtered read."""
    items: List[T]
    total: int
    limit: Optional[int] = None
    offset: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


class PageParams(BaseModel):
    """Limit/offset pair mixed into every filter."""
    limit: Optional[int] = Field(None, ge=1)
    offset: int = Field(0, ge=0)
