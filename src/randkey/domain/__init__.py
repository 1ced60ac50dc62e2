"""Domain layer: storage classes, key ranges and key configuration."""
from randkey.domain.key_config import KeyConfig
from randkey.domain.storage_class import (
    StorageClass,
    detect_host_word_size,
    max_digits,
    max_value,
    validate_digits,
)

__all__ = [
    "KeyConfig",
    "StorageClass",
    "detect_host_word_size",
    "max_digits",
    "max_value",
    "validate_digits",
]
