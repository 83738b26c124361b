"""
Service-layer error taxonomy.

Every error carries a machine readable ``code``, a human message and a
``context`` dict with the offending ids. The API layer maps the class to an
HTTP status; the services never deal with status codes.
"""
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy.exc import SQLAlchemyError


class ServiceError(Exception):
    code = "service_error"

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)


class ValidationError(ServiceError):
    """Malformed or missing input, or a referenced id that does not exist."""
    code = "validation_error"


class ForbiddenError(ServiceError):
    """The permission guard denied the action."""
    code = "forbidden"


class NotFoundError(ServiceError):
    """The primary entity of the operation does not exist."""
    code = "not_found"


class BusinessRuleViolation(ServiceError):
    """A domain invariant would be broken by the operation."""
    code = "business_rule_violation"


class StoreFailure(ServiceError):
    """The persistence layer failed for reasons unrelated to caller input."""
    code = "store_failure"


@contextmanager
def translate_store_errors(operation: str, **context: Any) -> Iterator[None]:
    """Re-raise SQLAlchemy errors from the wrapped block as StoreFailure."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreFailure(f"{operation} failed", **context) from exc
