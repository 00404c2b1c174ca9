"""
Short-code generation for the Shortener Platform.

Codes are drawn from a 31-symbol alphabet with the visually confusable
characters removed (no I, L, O, 0 or 1), so they survive being read aloud
or retyped from print:

    ABCDEFGHJKMNPQRSTUVWXYZ23456789

Properties:
    - Length is drawn uniformly from [min_length, max_length] once per
      `generate_unique_code` call; retries keep that length.
    - Characters come from `random.SystemRandom` (OS entropy).
    - Uniqueness is checked through an injected `exists` callable. The check
      does not reserve the code, so the store's unique constraint remains the
      final arbiter (see UrlManager for the conflict retry).
    - The retry loop is bounded by `max_attempts`; running out raises
      CodeGenerationExhaustedError so the caller can widen length or alphabet.
"""

import random
import re
from dataclasses import dataclass
from typing import Callable, Optional

from ..exceptions import CodeGenerationExhaustedError

SHORT_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
SHORT_CODE_PATTERN = re.compile(r"^[A-HJ-KM-NP-Z2-9]{6,8}$")
ROUTE_CODE_PATTERN = re.compile(r"^[A-HJ-KM-NP-Z2-9]+$")

ExistsCheck = Callable[[str], bool]

_rng = random.SystemRandom()


@dataclass(frozen=True)
class ShortCodeGenerator:
    """Collision-checked random code generator."""

    min_length: int = 6
    max_length: int = 8
    max_attempts: int = 20
    alphabet: str = SHORT_CODE_ALPHABET

    def __post_init__(self):
        if self.min_length < 1 or self.max_length < self.min_length:
            raise ValueError("Invalid short code length range")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def draw_length(self) -> int:
        return _rng.randint(self.min_length, self.max_length)

    def generate(self, length: Optional[int] = None) -> str:
        """Return one candidate code (no uniqueness check)."""
        size = length if length is not None else self.draw_length()
        return "".join(_rng.choice(self.alphabet) for _ in range(size))

    def generate_unique_code(self, exists: ExistsCheck) -> str:
        """
        Draw candidates until `exists(candidate)` is False.

        Raises:
            CodeGenerationExhaustedError: after `max_attempts` collisions.
        """
        length = self.draw_length()
        for _ in range(self.max_attempts):
            candidate = self.generate(length)
            if not exists(candidate):
                return candidate
        raise CodeGenerationExhaustedError(self.max_attempts, length)


def get_generator_from_config() -> ShortCodeGenerator:
    """Build a generator from `settings` (lengths and attempt cap)."""
    from ..config import settings

    return ShortCodeGenerator(
        min_length=settings.CODE_MIN_LENGTH,
        max_length=settings.CODE_MAX_LENGTH,
        max_attempts=settings.CODE_MAX_ATTEMPTS,
    )
