"""
randkey: random, fixed-digit integer primary keys.

    from randkey import KeyConfig, RandomKeyGenerator

    generator = RandomKeyGenerator(KeyConfig("MEDIUMINT", digits=8))
    new_id = generator.generate_unique_id(lambda key: session.get(Invoice, key) is not None)
"""
from randkey.application.key_generator import RandomKeyGenerator
from randkey.domain.key_config import KeyConfig
from randkey.domain.storage_class import StorageClass, max_digits, max_value, validate_digits
from randkey.exceptions import (
    ConfigError,
    ExhaustedRetriesError,
    GenerationCancelledError,
    RandomKeyError,
)

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "ExhaustedRetriesError",
    "GenerationCancelledError",
    "KeyConfig",
    "RandomKeyError",
    "RandomKeyGenerator",
    "StorageClass",
    "max_digits",
    "max_value",
    "validate_digits",
]
