import random

import pytest

from randkey.config import get_settings


@pytest.fixture
def rng():
    # seeded so a failing draw can be replayed
    return random.Random(20131017)


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    for key in (
        "RANDKEY_STORAGE_CLASS",
        "RANDKEY_DIGITS",
        "RANDKEY_MAX_ATTEMPTS",
        "RANDKEY_MAX_INSERT_ATTEMPTS",
        "LOG_LEVEL",
        "LOG_JSON",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class CountingCheck:
    """exists_check stub: answers from a script, then from a default."""

    def __init__(self, answers=(), default=False):
        self.answers = list(answers)
        self.default = default
        self.calls = []

    def __call__(self, candidate):
        self.calls.append(candidate)
        if self.answers:
            return self.answers.pop(0)
        return self.default


@pytest.fixture
def counting_check():
    return CountingCheck
