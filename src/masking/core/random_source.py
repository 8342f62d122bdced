"""Seeded randomness for deterministic masking.

Every stochastic rule draws its generator from ``get_generator``. With a seed
provider attached the generator is a ``random.Random`` seeded from the
provider's output, so the same identity key always yields the same masked
value. Without a provider the generator is ``random.SystemRandom``, backed by
OS entropy; its state is never stored, reused or logged.

The seeded path is a general-purpose PRNG seeded by a 32-bit integer. It is
adequate for anonymization consistency and is not cryptographically secure.
"""

import hashlib
import random
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Optional, Union

from cryptography.hazmat.primitives import hashes, hmac

from ..logging.logging_config import get_logger

logger = get_logger(__name__)

# Maps an identity key (often the value itself) to an integer seed.
SeedProvider = Callable[[Any], int]

SEED_BITS = 32

# Entity key of the record being masked; set by Masker when a key field is configured
_current_entity: ContextVar[Optional[Any]] = ContextVar("masking_entity", default=None)


def _key_bytes(key: Any) -> bytes:
    if isinstance(key, bytes):
        return key
    if hasattr(key, "isoformat"):
        return key.isoformat().encode("utf-8")
    return str(key).encode("utf-8")


def seed_from_key(key: Any) -> int:
    """Derive a stable 32-bit seed from an arbitrary key.

    Unlike ``hash()``, the result does not change between interpreter runs.

    Args:
        key: Any value; bytes are used as-is, dates via ``isoformat`` and
            everything else via ``str``.

    Returns:
        int: Seed in ``[0, 2**32)``
    """
    digest = hashlib.sha256(_key_bytes(key)).digest()
    return int.from_bytes(digest[:SEED_BITS // 8], "big")


def keyed_seed_provider(
    secret: Union[str, bytes],
    key_func: Optional[Callable[[Any], Any]] = None
) -> SeedProvider:
    """Create a seed provider that derives seeds with HMAC-SHA256.

    Seeds cannot be recomputed from the identity key alone, which keeps
    pseudonymized output from being reproduced without the secret.

    Args:
        secret: Secret key material
        key_func: Optional function selecting the identity key from the
            observed value. Defaults to the value itself.

    Returns:
        SeedProvider: The provider
    """
    if not secret:
        raise ValueError("Seed secret must not be empty")
    secret_bytes = secret.encode("utf-8") if isinstance(secret, str) else secret

    def provider(value: Any) -> int:
        key = key_func(value) if key_func else value
        mac = hmac.HMAC(secret_bytes, hashes.SHA256())
        mac.update(_key_bytes(key))
        return int.from_bytes(mac.finalize()[:SEED_BITS // 8], "big")

    provider.__name__ = "keyed_seed_provider"
    return provider


def entity_seed_provider(entity_key: Any, secret: Optional[Union[str, bytes]] = None) -> SeedProvider:
    """Create a provider that ignores the observed value and seeds by entity.

    Attaching the same entity provider to every date rule for one patient or
    customer shifts all of that entity's dates by the same offset.

    Args:
        entity_key: External identity (e.g. a patient id)
        secret: Optional secret; when given the seed is derived with HMAC

    Returns:
        SeedProvider: The provider
    """
    if secret:
        seed = keyed_seed_provider(secret)(entity_key)
    else:
        seed = seed_from_key(entity_key)

    def provider(_value: Any) -> int:
        return seed

    provider.__name__ = "entity_seed_provider"
    return provider


def get_generator(
    input_value: Any,
    seed_provider: Optional[SeedProvider] = None
) -> random.Random:
    """Return the random source for one rule application.

    Args:
        input_value: The value handed to the seed provider
        seed_provider: Optional seed provider

    Returns:
        random.Random: Deterministic generator when a provider is attached,
        otherwise an OS-entropy generator.
    """
    if seed_provider is not None:
        return random.Random(seed_provider(input_value))
    return random.SystemRandom()


class SeededRule:
    """Mixin for rules whose output depends on a random source.

    The provider is attached once, before the rule is shared; rules are not
    re-seeded while in use.
    """

    seed_provider: Optional[SeedProvider] = None

    def with_seed_provider(self, provider: Optional[SeedProvider]):
        """Attach a seed provider and return the rule."""
        self.seed_provider = provider
        return self

    def get_generator(self, input_value: Any) -> random.Random:
        return get_generator(input_value, self.seed_provider)


@contextmanager
def entity_scope(entity_key: Any) -> Iterator[None]:
    """Make ``entity_key`` the current entity for the enclosed block.

    Scopes nest and are local to the current thread or task.
    """
    token = _current_entity.set(entity_key)
    try:
        yield
    finally:
        _current_entity.reset(token)


def current_entity() -> Optional[Any]:
    return _current_entity.get()


def entity_or_value(value: Any) -> Any:
    """Key function selecting the current entity when one is set, else the value."""
    entity = _current_entity.get()
    return value if entity is None else entity
