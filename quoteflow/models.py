"""Plain data records shared by the session, scenarios and runner."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, Literal

DENIAL_TOO_MANY_ACCIDENTS = "No Insurance for you!!  Too many accidents - go take a course!"
DENIAL_AGE_EXPERIENCE = "No Insurance for you!! Driver Age / Experience Not Correct"
DENIAL_MESSAGES = (DENIAL_TOO_MANY_ACCIDENTS, DENIAL_AGE_EXPERIENCE)

_QUOTE_PATTERN = re.compile(r"^\$(\d+)$")

OutcomeKind = Literal["quote", "denial", "validation"]


@dataclass(frozen=True)
class FormInput:
    """Literal values typed into the quote form.

    The personal and contact defaults are well formed; the driving fields
    default to empty, which leaves the field blank on the page.
    """

    first_name: str = "Sharan"
    last_name: str = "Kaur"
    address: str = "123 Main St"
    city: str = "Waterloo"
    postal_code: str = "N2L 3G1"
    phone: str = "519-555-1234"
    email: str = "skaur@gmail.com"
    age: str = ""
    experience: str = ""
    accidents: str = ""

    def with_driving(self, age: str | int, experience: str | int, accidents: str | int) -> "FormInput":
        return replace(self, age=str(age), experience=str(experience), accidents=str(accidents))

    def with_values(self, **changes: str) -> "FormInput":
        return replace(self, **changes)

    def personal_fields(self) -> Iterator[tuple[str, str]]:
        yield "first_name", self.first_name
        yield "last_name", self.last_name
        yield "address", self.address
        yield "city", self.city

    def contact_fields(self) -> Iterator[tuple[str, str]]:
        yield "postal_code", self.postal_code
        yield "phone", self.phone
        yield "email", self.email

    def driving_fields(self) -> Iterator[tuple[str, str]]:
        yield "age", self.age
        yield "experience", self.experience
        yield "accidents", self.accidents


@dataclass(frozen=True)
class ExpectedOutcome:
    """What a scenario expects the page to show after submission."""

    kind: OutcomeKind
    value: str | None = None
    field: str | None = None

    @classmethod
    def quote(cls, amount: int | str) -> "ExpectedOutcome":
        text = str(amount)
        return cls(kind="quote", value=text if text.startswith("$") else f"${text}")

    @classmethod
    def denial(cls, message: str) -> "ExpectedOutcome":
        return cls(kind="denial", value=message)

    @classmethod
    def validation(cls, field: str) -> "ExpectedOutcome":
        return cls(kind="validation", field=field)

    def matches(self, actual: str | None) -> bool:
        if self.kind == "validation":
            return bool(actual)
        return actual == self.value

    def describe(self) -> str:
        if self.kind == "validation":
            return f"validation message on {self.field}"
        return f"{self.kind} {self.value!r}"


@dataclass(frozen=True)
class QuoteOutcome:
    """Classification of the text found in the result field."""

    kind: Literal["quote", "denial", "unknown"]
    text: str
    amount: int | None = None

    @classmethod
    def parse(cls, text: str | None) -> "QuoteOutcome":
        value = text or ""
        match = _QUOTE_PATTERN.match(value.strip())
        if match:
            return cls(kind="quote", text=value, amount=int(match.group(1)))
        if value in DENIAL_MESSAGES:
            return cls(kind="denial", text=value)
        return cls(kind="unknown", text=value)


class ValidationSignal(str, Enum):
    """Where a validation message came from."""

    NATIVE = "native"
    MARKER = "marker"
    ABSENT = "absent"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of inspecting one field for a validation message.

    ``error`` is set when the lookup itself failed; the signal is then
    ``ABSENT`` but the failure stays visible to the caller.
    """

    field: str
    signal: ValidationSignal
    message: str = ""
    error: str | None = None

    @property
    def present(self) -> bool:
        return self.signal is not ValidationSignal.ABSENT
