"""
Base value object classes.

Value objects are immutable and compared by value. Subclasses validate in
``_validate``, which runs right after dataclass construction.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Self


@dataclass(frozen=True)
class ValueObject(ABC):
    """Frozen dataclass base with a construction-time validation hook."""

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        pass


class StatusEnum(str, Enum):
    """String enum that serializes as its value and parses case-insensitively."""

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, value: str) -> Self:
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Invalid {cls.__name__}: {value}")
