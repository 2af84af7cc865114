"""Password Value Objects for domain modeling.

These value objects encapsulate the password policy and the distinction between
a plain password (only ever held in memory while a request is served) and its
one-way hash (the only form that is persisted).
"""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class PasswordPolicy:
    """Configuration-driven password rules.

    Attributes:
        min_length: Minimum number of characters.
        max_length: Maximum number of characters (bcrypt only reads 72 bytes,
            longer inputs are capped to keep hashing cost bounded).
        require_letter: At least one alphabetic character.
        require_digit: At least one numeric character.
    """

    min_length: int = 8
    max_length: int = 128
    require_letter: bool = True
    require_digit: bool = True

    def violations(self, value: str) -> List[str]:
        """Returns every rule ``value`` breaks, in a stable order."""
        problems = []
        if len(value) < self.min_length:
            problems.append(f"Password must be at least {self.min_length} characters long")
        if len(value) > self.max_length:
            problems.append(f"Password must not exceed {self.max_length} characters")
        if self.require_letter and not any(char.isalpha() for char in value):
            problems.append("Password must contain at least one letter")
        if self.require_digit and not any(char.isdigit() for char in value):
            problems.append("Password must contain at least one digit")
        return problems


@dataclass(frozen=True)
class Password:
    """A plain password that has already passed a :class:`PasswordPolicy`.

    Instances are produced by ``CredentialValidator.validate_password``; the
    raw value is excluded from ``repr`` so it never reaches a log line.
    """

    value: str = field(repr=False)

    def __str__(self) -> str:
        return "********"


@dataclass(frozen=True)
class HashedPassword:
    """A one-way, salted password hash as stored on the account.

    Raises:
        ValueError: If the hash is empty.
    """

    value: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Password hash cannot be empty")

    def __str__(self) -> str:
        return self.value
