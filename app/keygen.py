"""Key generation strategies for document keys.

Generators produce candidate keys only; uniqueness is enforced by the store's
create-if-absent write and the retry loop in the document service.

Strategy Overview
=================
::
    random    ─ independent uniform draws from the keyspace (nanoid)
                e.g. "aB3xK9qT0z"
    phonetic  ─ alternating consonant / vowel characters
                e.g. "ozutebihak"

How to Use
===========
**Step 1 — Build from settings**::
    generator = build_key_generator(settings)

**Step 2 — Draw a candidate**::
    key = generator.generate(10)

Key Behaviours
===============
- Output length always equals the requested length.
- Every character is an ASCII letter or digit, so keys never need escaping in a URL path.
- Generators are stateless between calls and never touch the store.
- Keys are not a security primitive.
"""

import random
import string
from typing import TYPE_CHECKING, Callable, Protocol

from nanoid import generate

from app.enums import KeyGeneratorType

if TYPE_CHECKING:
    from app.config import Settings

__all__ = [
    "ALPHANUMERIC",
    "CONSONANTS",
    "VOWELS",
    "KeyGenerator",
    "RandomKeyGenerator",
    "PhoneticKeyGenerator",
    "build_key_generator",
]

ALPHANUMERIC = string.ascii_letters + string.digits
CONSONANTS = "bcdfghjklmnpqrstvwxyz"
VOWELS = "aeiou"


class KeyGenerator(Protocol):
    def generate(self, length: int) -> str: ...


def _check_length(length: int) -> None:
    if not isinstance(length, int) or length <= 0:
        raise ValueError(f"length must be a positive integer, got {length!r}")


class RandomKeyGenerator:
    def __init__(self, keyspace: str = ALPHANUMERIC) -> None:
        if not keyspace:
            raise ValueError("keyspace must not be empty")
        invalid = set(keyspace) - set(ALPHANUMERIC)
        if invalid:
            raise ValueError(f"keyspace contains characters that are not path-safe: {''.join(sorted(invalid))!r}")
        # Duplicates would skew the distribution.
        self.keyspace = "".join(dict.fromkeys(keyspace))

    def generate(self, length: int) -> str:
        _check_length(length)
        return generate(self.keyspace, length)


class PhoneticKeyGenerator:
    """Pronounceable keys built from alternating consonants and vowels.

    The first character class is picked at random for every key, then the
    cursor flips after each character.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.SystemRandom()

    def generate(self, length: int) -> str:
        _check_length(length)
        use_consonant = self._rng.random() < 0.5
        chars: list[str] = []
        for _ in range(length):
            chars.append(self._rng.choice(CONSONANTS if use_consonant else VOWELS))
            use_consonant = not use_consonant
        return "".join(chars)


_REGISTRY: dict[KeyGeneratorType, Callable[["Settings"], KeyGenerator]] = {
    KeyGeneratorType.RANDOM: lambda settings: RandomKeyGenerator(settings.KEY_GENERATOR_KEYSPACE),
    KeyGeneratorType.PHONETIC: lambda settings: PhoneticKeyGenerator(),
}


def build_key_generator(settings: "Settings") -> KeyGenerator:
    """Construct the generator selected by ``KEY_GENERATOR_TYPE``."""
    return _REGISTRY[KeyGeneratorType(settings.KEY_GENERATOR_TYPE)](settings)
