"""
Access key ("clave de acceso") — the 49-digit identity of a tax document.

Layout (0-indexed positions):

    [0:8]   issue date, ddmmyyyy
    [8:10]  document type
    [10:23] taxpayer RUC
    [23]    environment: 1 = test, 2 = production
    [24:30] series (establishment + emission point)
    [30:39] sequential number
    [39:47] numeric code
    [47]    emission type
    [48]    modulo-11 check digit

The environment digit is what lets an authorization check pick the right
endpoint from the key alone, so it is decoded through `decode_environment`
rather than sliced ad hoc.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import StrEnum, unique

from railway import Result

from sri_submitter.domain.errors import InvalidAccessKey

ACCESS_KEY_LENGTH = 49
ENVIRONMENT_DIGIT_INDEX = 23

_ACCESS_KEY_PATTERN = re.compile(r"[0-9]{49}")


@unique
class Environment(StrEnum):
    """Target environment. The value is the digit used in documents and access keys."""

    TEST = "1"
    PRODUCTION = "2"

    @staticmethod
    def from_code(code: str) -> Environment:
        """Map an `ambiente` field value. Raises ValueError for anything but "1" or "2"."""
        return Environment(str(code).strip())


def decode_environment(value: str) -> Environment:
    """Environment encoded at ENVIRONMENT_DIGIT_INDEX of a well-formed access key."""
    digit = value[ENVIRONMENT_DIGIT_INDEX]
    try:
        return Environment(digit)
    except ValueError:
        raise InvalidAccessKey(f"Unknown environment digit {digit!r} in access key") from None


def modulo11_check_digit(body: str) -> int:
    """Check digit over a run of digits: weights 2..7 cycling from the right."""
    total = sum(int(d) * (2 + i % 6) for i, d in enumerate(reversed(body)))
    digit = 11 - total % 11
    if digit == 11:
        return 0
    if digit == 10:
        return 1
    return digit


@dataclass(frozen=True, slots=True)
class AccessKey:
    """A validated access key. Immutable for the whole document lifecycle."""

    value: str

    def __post_init__(self) -> None:
        if not _ACCESS_KEY_PATTERN.fullmatch(self.value):
            raise InvalidAccessKey(f"Access key must be exactly {ACCESS_KEY_LENGTH} ASCII digits")
        decode_environment(self.value)

    @staticmethod
    def parse(raw: str | None) -> Result[AccessKey]:
        """Validate shape and environment digit without touching the network."""
        if raw is None:
            return InvalidAccessKey("Access key is required").to_result()
        try:
            return Result.success(AccessKey(raw))
        except InvalidAccessKey as e:
            return e.to_result()

    @property
    def environment(self) -> Environment:
        return decode_environment(self.value)

    @property
    def has_valid_check_digit(self) -> bool:
        return modulo11_check_digit(self.value[:-1]) == int(self.value[-1])

    @staticmethod
    def compose(
        issue_date: date,
        document_type: str,
        taxpayer_id: str,
        environment: Environment,
        series: str,
        sequential: str,
        numeric_code: str,
        emission_type: str = "1",
    ) -> AccessKey:
        """
        Build an access key from its parts and append the check digit.

        Raises InvalidAccessKey if any part has the wrong width or non-digits.
        """
        parts = [
            (issue_date.strftime("%d%m%Y"), 8),
            (document_type, 2),
            (taxpayer_id, 13),
            (environment.value, 1),
            (series, 6),
            (sequential.zfill(9), 9),
            (numeric_code, 8),
            (emission_type, 1),
        ]
        for part, width in parts:
            if len(part) != width or not part.isascii() or not part.isdigit():
                raise InvalidAccessKey(f"Access key part {part!r} must be {width} digits")
        body = "".join(part for part, _ in parts)
        return AccessKey(body + str(modulo11_check_digit(body)))

    def __str__(self) -> str:
        return self.value
