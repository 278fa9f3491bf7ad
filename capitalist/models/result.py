"""Tagged success/failure results shared by the cache, fetcher, resolver and directory."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories surfaced by the data layer."""

    network = "network"
    not_found = "not_found"
    invalid = "invalid"
    location_denied = "location_denied"
    max_reached = "max_reached"


@dataclass(frozen=True)
class CatalogError:
    """A failure wrapped at the boundary where it occurred."""

    kind: ErrorKind
    message: str = ""


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed result carrying a CatalogError."""

    error: CatalogError

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


Result = Union[Ok[T], Err]


def network(message: str) -> Err:
    return Err(CatalogError(ErrorKind.network, message))


def not_found(message: str = "") -> Err:
    return Err(CatalogError(ErrorKind.not_found, message))


def invalid(message: str = "") -> Err:
    return Err(CatalogError(ErrorKind.invalid, message))


def location_denied(message: str = "") -> Err:
    return Err(CatalogError(ErrorKind.location_denied, message))


def max_reached(message: str = "") -> Err:
    return Err(CatalogError(ErrorKind.max_reached, message))
