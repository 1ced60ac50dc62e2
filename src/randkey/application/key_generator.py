"""
Random Key Generator
Draws fixed-digit, non-sequential integer keys and retries until the record
store reports no conflict.

The existence check is an optimisation, not a guarantee: a concurrent caller
can take the same key between the check and the insert. The primary key
constraint is the source of truth; on a constraint violation call
generate_unique_id() again (see infrastructure.database.key_allocation).
"""
from __future__ import annotations

import inspect
import random
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from randkey.domain.key_config import KeyConfig
from randkey.exceptions import ExhaustedRetriesError, GenerationCancelledError
from randkey.infrastructure.observability.logger import get_logger

logger = get_logger(__name__)

# OS entropy, never reseeded; safe to share across threads.
_system_random = random.SystemRandom()

_DEFAULT = object()


class CancellationSignal(Protocol):
    """threading.Event, asyncio.Event or anything else with is_set()."""

    def is_set(self) -> bool: ...


ExistsCheck = Union[Callable[[int], Any], Any]


def _resolve_check(exists_check: ExistsCheck) -> Callable[[int], Any]:
    # A RecordStore (or AsyncRecordStore) is accepted in place of a bare callable.
    check = getattr(exists_check, "exists", exists_check)
    if not callable(check):
        raise TypeError(f"exists_check must be callable or define exists(), got {exists_check!r}")
    return check


def _discard(awaitable: Any) -> None:
    # avoid "coroutine was never awaited"
    close = getattr(awaitable, "close", None)
    if close is not None:
        close()


class RandomKeyGenerator:
    """
    Generates candidate keys for a KeyConfig and finds one that is not taken.

    Stateless apart from the random source, so one instance may serve many
    threads or tasks.

    Attributes:
        config: Default KeyConfig, used when a call does not pass its own
        max_attempts: Default retry ceiling; None means retry forever
    """

    def __init__(
        self,
        config: Optional[KeyConfig] = None,
        *,
        max_attempts: Optional[int] = _DEFAULT,  # type: ignore[assignment]
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Args:
            config: Default key configuration; RANDKEY_STORAGE_CLASS / RANDKEY_DIGITS if omitted
            max_attempts: Retry ceiling; defaults to RANDKEY_MAX_ATTEMPTS
            rng: Random source; the OS entropy source if omitted
        """
        from randkey.config import get_settings

        if max_attempts is _DEFAULT:
            max_attempts = get_settings().MAX_ATTEMPTS
        self._check_ceiling(max_attempts)
        self.config = config if config is not None else KeyConfig.from_settings(get_settings())
        self.max_attempts = max_attempts
        self._rng = rng if rng is not None else _system_random

    @classmethod
    def from_settings(cls, settings=None, *, rng: Optional[random.Random] = None) -> "RandomKeyGenerator":
        from randkey.config import get_settings

        settings = settings or get_settings()
        return cls(KeyConfig.from_settings(settings), max_attempts=settings.MAX_ATTEMPTS, rng=rng)

    @staticmethod
    def _check_ceiling(max_attempts: Optional[int]) -> None:
        if max_attempts is None:
            return
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
            raise ValueError(f"max_attempts must be a positive integer or None, got {max_attempts!r}")

    def _ceiling(self, max_attempts: Optional[int]) -> Optional[int]:
        if max_attempts is _DEFAULT:
            return self.max_attempts
        self._check_ceiling(max_attempts)
        return max_attempts

    # ------------------------------------------------------------------
    # Candidates
    # ------------------------------------------------------------------
    def generate_candidate(self, config: Optional[KeyConfig] = None) -> int:
        """
        Draw one key with exactly `digits` digits that fits the storage class.

        The config is re-validated on every call since it may be changed
        between calls. Drawing from the range already clipped to the storage
        maximum is equivalent to redrawing until a value fits.

        Raises:
            ConfigError: If the configuration is invalid
        """
        config = config if config is not None else self.config
        config.validate()
        low, high = config.bounds
        return self._rng.randint(low, high)

    # ------------------------------------------------------------------
    # Unique keys
    # ------------------------------------------------------------------
    def generate_unique_id(
        self,
        exists_check: ExistsCheck,
        config: Optional[KeyConfig] = None,
        *,
        max_attempts: Optional[int] = _DEFAULT,  # type: ignore[assignment]
        cancel: Optional[CancellationSignal] = None,
    ) -> int:
        """
        Return the first candidate the record store does not already hold.

        Args:
            exists_check: `(candidate) -> bool` or an object with `exists()`;
                may block on I/O
            config: Overrides the generator's default config
            max_attempts: Overrides the generator's retry ceiling
            cancel: Checked before every attempt

        Raises:
            ConfigError: Invalid configuration
            ExhaustedRetriesError: Ceiling reached, every candidate was taken
            GenerationCancelledError: `cancel` was set
            TypeError: `exists_check` is async; use agenerate_unique_id()
            Exception: Anything raised by `exists_check`, unchanged
        """
        check = _resolve_check(exists_check)
        ceiling = self._ceiling(max_attempts)
        config = config if config is not None else self.config

        attempt = 0
        while ceiling is None or attempt < ceiling:
            if cancel is not None and cancel.is_set():
                self._cancelled(config, attempt)
            candidate = self.generate_candidate(config)
            attempt += 1
            logger.debug("key_candidate_checking", attempt=attempt, candidate=candidate)
            taken = check(candidate)
            if inspect.isawaitable(taken):
                _discard(taken)
                raise TypeError("exists_check returned an awaitable; use agenerate_unique_id() for async record stores")
            if not taken:
                self._done(config, attempt)
                return candidate
            logger.debug("key_candidate_conflict", attempt=attempt, candidate=candidate)

        self._exhausted(config, attempt)

    async def agenerate_unique_id(
        self,
        exists_check: Union[Callable[[int], Awaitable[Any]], ExistsCheck],
        config: Optional[KeyConfig] = None,
        *,
        max_attempts: Optional[int] = _DEFAULT,  # type: ignore[assignment]
        cancel: Optional[CancellationSignal] = None,
    ) -> int:
        """
        Async variant of generate_unique_id().

        The check is awaited when it returns an awaitable, so other tasks keep
        running while the database answers. Cancelling the task raises
        asyncio.CancelledError at the pending check.
        """
        check = _resolve_check(exists_check)
        ceiling = self._ceiling(max_attempts)
        config = config if config is not None else self.config

        attempt = 0
        while ceiling is None or attempt < ceiling:
            if cancel is not None and cancel.is_set():
                self._cancelled(config, attempt)
            candidate = self.generate_candidate(config)
            attempt += 1
            logger.debug("key_candidate_checking", attempt=attempt, candidate=candidate)
            taken = check(candidate)
            if inspect.isawaitable(taken):
                taken = await taken
            if not taken:
                self._done(config, attempt)
                return candidate
            logger.debug("key_candidate_conflict", attempt=attempt, candidate=candidate)

        self._exhausted(config, attempt)

    # ------------------------------------------------------------------
    # Terminal states
    # ------------------------------------------------------------------
    @staticmethod
    def _done(config: KeyConfig, attempts: int) -> None:
        logger.info(
            "key_generated",
            storage_class=config.storage_class.value,
            digits=config.digits,
            attempts=attempts,
        )

    @staticmethod
    def _cancelled(config: KeyConfig, attempts: int) -> None:
        logger.info("key_generation_cancelled", storage_class=config.storage_class.value, attempts=attempts)
        raise GenerationCancelledError(
            "Key generation was cancelled",
            details={"attempts": attempts},
        )

    @staticmethod
    def _exhausted(config: KeyConfig, attempts: int) -> None:
        logger.warning(
            "key_generation_exhausted",
            storage_class=config.storage_class.value,
            digits=config.digits,
            attempts=attempts,
        )
        raise ExhaustedRetriesError(
            f"No free key after {attempts} attempts; widen the digit count or storage class",
            details={
                "attempts": attempts,
                "storage_class": config.storage_class.value,
                "digits": config.digits,
            },
        )
