# src/randkey/domain/key_config.py
"""KeyConfig: what kind of key to generate."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Tuple, Union

from randkey.domain.storage_class import (
    StorageClass,
    detect_host_word_size,
    max_value,
    validate_digits,
)

if TYPE_CHECKING:
    from randkey.config import Settings

_FIELDS = ("storage_class", "digits", "host_word_size_bits")


class KeyConfig:
    """
    Storage class, digit count and host word size for generated keys.

    Every assignment is validated against the other two fields before it is
    applied, so an instance never holds an invalid combination:

        cfg = KeyConfig()                 # INT, 10 digits, detected host
        cfg.storage_class = "BIGINT"
        cfg.digits = 15
        cfg.digits = 30                   # ConfigError, digits stays 15
    """

    __slots__ = _FIELDS

    storage_class: StorageClass
    digits: int
    host_word_size_bits: int

    def __init__(
        self,
        storage_class: Union[StorageClass, str] = StorageClass.INT,
        digits: int = 10,
        host_word_size_bits: Optional[int] = None,
    ) -> None:
        if host_word_size_bits is None:
            host_word_size_bits = detect_host_word_size()
        storage_class = StorageClass.parse(storage_class)
        validate_digits(digits, storage_class, host_word_size_bits)
        object.__setattr__(self, "storage_class", storage_class)
        object.__setattr__(self, "digits", digits)
        object.__setattr__(self, "host_word_size_bits", host_word_size_bits)

    @classmethod
    def from_settings(cls, settings: "Settings", host_word_size_bits: Optional[int] = None) -> "KeyConfig":
        return cls(
            storage_class=settings.STORAGE_CLASS,
            digits=settings.DIGITS,
            host_word_size_bits=host_word_size_bits,
        )

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in _FIELDS:
            raise AttributeError(f"{self.__class__.__name__} has no attribute {name!r}")
        if name == "storage_class":
            value = StorageClass.parse(value)
        proposed = {field: getattr(self, field) for field in _FIELDS}
        proposed[name] = value
        validate_digits(proposed["digits"], proposed["storage_class"], proposed["host_word_size_bits"])
        object.__setattr__(self, name, value)

    def validate(self) -> None:
        validate_digits(self.digits, self.storage_class, self.host_word_size_bits)

    @property
    def max_value(self) -> int:
        return max_value(self.storage_class, self.host_word_size_bits)

    @property
    def bounds(self) -> Tuple[int, int]:
        """Inclusive (low, high) range a candidate is drawn from."""
        low = 10 ** (self.digits - 1)
        high = min(10 ** self.digits - 1, self.max_value)
        return low, high

    def copy(self) -> "KeyConfig":
        return KeyConfig(self.storage_class, self.digits, self.host_word_size_bits)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyConfig):
            return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in _FIELDS)

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return (
            f"KeyConfig(storage_class={self.storage_class.value!r}, digits={self.digits}, "
            f"host_word_size_bits={self.host_word_size_bits})"
        )
