"""
Error taxonomy and its HTTP mapping.
"""
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from estate_crm.api.errors import build_error_payload, status_for
from estate_crm.services.errors import (
    BusinessRuleViolation,
    ForbiddenError,
    NotFoundError,
    ServiceError,
    StoreFailure,
    ValidationError,
    translate_store_errors,
)


class TestTranslateStoreErrors:
    def test_wraps_sqlalchemy_errors(self):
        cause = OperationalError("SELECT 1", {}, Exception("server closed the connection"))

        with pytest.raises(StoreFailure) as exc_info:
            with translate_store_errors("lead lookup", lead_id=5):
                raise cause

        assert exc_info.value.message == "lead lookup failed"
        assert exc_info.value.context == {"lead_id": 5}
        assert exc_info.value.__cause__ is cause

    def test_integrity_errors_are_store_failures_too(self):
        with pytest.raises(StoreFailure):
            with translate_store_errors("deal write"):
                raise IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))

    def test_service_errors_pass_through(self):
        with pytest.raises(NotFoundError):
            with translate_store_errors("lead lookup"):
                raise NotFoundError("Lead 1 not found", lead_id=1)


class TestStatusMapping:
    @pytest.mark.parametrize(
        "error, status_code",
        [
            (ValidationError("bad"), 400),
            (ForbiddenError("no"), 403),
            (NotFoundError("gone"), 404),
            (BusinessRuleViolation("clash"), 409),
            (StoreFailure("down"), 500),
            (ServiceError("unknown"), 500),
        ],
    )
    def test_status_for(self, error, status_code):
        assert status_for(error) == status_code

    def test_codes_are_distinct(self):
        codes = {cls.code for cls in (ValidationError, ForbiddenError, NotFoundError, BusinessRuleViolation, StoreFailure)}
        assert len(codes) == 5


def test_build_error_payload_without_request():
    payload = build_error_payload(code="not_found", message="Lead 3 not found", context={"lead_id": 3})

    assert payload == {
        "code": "not_found",
        "message": "Lead 3 not found",
        "detail": None,
        "context": {"lead_id": 3},
    }
