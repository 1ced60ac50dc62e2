"""
Storage classes and their permissible key ranges.

The maxima are a fixed table rather than a function of bit width: they encode
platform choices (signed host integers, the 32-bit INT ceiling of
2147483646) that a formula would not reproduce. The full unsigned BIGINT
range is unreachable; use a database-side generator (e.g. MySQL
UUID_SHORT()) if it is needed.
"""
from __future__ import annotations

import struct
from enum import Enum
from typing import Dict, Literal, Union

from randkey.exceptions import ConfigError

HostWordSize = Literal[32, 64]
SUPPORTED_WORD_SIZES = (32, 64)


class StorageClass(str, Enum):
    """Fixed-width integer column type a generated key is destined for."""

    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    MEDIUMINT = "MEDIUMINT"
    INT = "INT"
    BIGINT = "BIGINT"

    @property
    def bits(self) -> int:
        return _BITS[self]

    @classmethod
    def parse(cls, value: Union[str, "StorageClass"]) -> "StorageClass":
        """Resolve a member from a member or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ConfigError(
            f"Unknown storage class: {value!r}",
            details={"allowed": [m.value for m in cls]},
        )

    def __str__(self) -> str:
        return self.value


_BITS: Dict[StorageClass, int] = {
    StorageClass.TINYINT: 8,
    StorageClass.SMALLINT: 16,
    StorageClass.MEDIUMINT: 24,
    StorageClass.INT: 32,
    StorageClass.BIGINT: 64,
}

# BIGINT is absent from the 32-bit table on purpose.
_MAX_VALUES: Dict[int, Dict[StorageClass, int]] = {
    64: {
        StorageClass.TINYINT: 255,
        StorageClass.SMALLINT: 65535,
        StorageClass.MEDIUMINT: 16777215,
        StorageClass.INT: 4294967295,
        StorageClass.BIGINT: 9223372036854775807,
    },
    32: {
        StorageClass.TINYINT: 255,
        StorageClass.SMALLINT: 65535,
        StorageClass.MEDIUMINT: 16777215,
        StorageClass.INT: 2147483646,
    },
}


def detect_host_word_size() -> int:
    """Native integer width of the running interpreter, in bits."""
    return struct.calcsize("P") * 8


def _check_word_size(host_word_size_bits: int) -> None:
    if isinstance(host_word_size_bits, bool) or host_word_size_bits not in SUPPORTED_WORD_SIZES:
        raise ConfigError(
            f"Unsupported host word size: {host_word_size_bits!r}",
            details={"allowed": list(SUPPORTED_WORD_SIZES)},
        )


def max_value(storage_class: Union[StorageClass, str], host_word_size_bits: int) -> int:
    """
    Largest key value permitted for a storage class on a host of the given width.

    Raises:
        ConfigError: BIGINT on a 32-bit host, or an unsupported word size
    """
    storage_class = StorageClass.parse(storage_class)
    _check_word_size(host_word_size_bits)
    try:
        return _MAX_VALUES[host_word_size_bits][storage_class]
    except KeyError:
        raise ConfigError(
            f"{storage_class} keys are unavailable on a {host_word_size_bits}-bit host",
            details={"storage_class": storage_class.value, "host_word_size_bits": host_word_size_bits},
        ) from None


def max_digits(storage_class: Union[StorageClass, str], host_word_size_bits: int) -> int:
    """Decimal digit count of max_value(), i.e. floor(log10(max)) + 1."""
    return len(str(max_value(storage_class, host_word_size_bits)))


def validate_digits(
    digits: int,
    storage_class: Union[StorageClass, str],
    host_word_size_bits: int,
) -> None:
    """
    Check that `digits` fits the storage class on this host.

    Raises:
        ConfigError: digits is not an int in [1, max_digits], or the storage
            class is unavailable on the host
    """
    upper = max_digits(storage_class, host_word_size_bits)
    if isinstance(digits, bool) or not isinstance(digits, int):
        raise ConfigError(f"digits must be an integer, got {digits!r}")
    if not 1 <= digits <= upper:
        raise ConfigError(
            f"digits must be between 1 and {upper} for {StorageClass.parse(storage_class)} "
            f"on a {host_word_size_bits}-bit host, got {digits}",
            details={
                "digits": digits,
                "max_digits": upper,
                "storage_class": StorageClass.parse(storage_class).value,
                "host_word_size_bits": host_word_size_bits,
            },
        )
