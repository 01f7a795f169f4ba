"""Join code generation and normalization."""

from __future__ import annotations

import secrets
from typing import Callable, Sequence

from bandsync.constants import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH
from bandsync.errors import ValidationError

Chooser = Callable[[Sequence[str]], str]


def generate_code(choose: Chooser = secrets.choice) -> str:
    """Draw a join code uniformly from the alphabet."""
    return "".join(choose(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))


def is_valid_code(code: str) -> bool:
    """Return True for an already-normalized join code."""
    return len(code) == JOIN_CODE_LENGTH and all(
        char in JOIN_CODE_ALPHABET for char in code
    )


def normalize_code(raw: str | None) -> str:
    """Trim and uppercase a submitted code, rejecting malformed ones."""
    code = (raw or "").strip().upper()
    if not is_valid_code(code):
        raise ValidationError(
            f"Group code must be {JOIN_CODE_LENGTH} letters or digits."
        )
    return code
