"""Tests for the success/failure envelopes and error translation."""

from __future__ import annotations

import pytest

from core.errors import (
    ActionResponse,
    ApiFailure,
    ApiSuccess,
    AppError,
    ErrorCode,
    Ok,
    action_fail,
    action_from_error,
    action_from_result,
    action_ok,
    db_error,
    fail,
    fail_from_error,
    from_result,
    is_fail,
    is_ok,
    not_found,
    ok,
    validation_error,
)


@pytest.mark.parametrize("data", [None, 0, "", [], {"a": {"b": [1, None]}}])
def test_ok_wraps_any_value_unchanged(data):
    envelope = ok(data)
    assert envelope.success is True
    assert envelope.data is data
    assert envelope.to_dict() == {"success": True, "data": data}


def test_fail_with_code_and_details():
    envelope = fail("Out of stock", ErrorCode.INSUFFICIENT_STOCK, {"available": 0})
    assert envelope.to_dict() == {
        "success": False,
        "error": {"message": "Out of stock", "code": "INSUFFICIENT_STOCK", "details": {"available": 0}},
    }


def test_fail_omits_absent_code_and_details():
    assert fail("Nope").to_dict() == {"success": False, "error": {"message": "Nope"}}


def test_fail_keeps_falsy_details():
    assert fail("Nope", "X", {}).to_dict()["error"]["details"] == {}


def test_fail_accepts_codes_outside_the_taxonomy():
    assert fail("Legacy", "LEGACY_CODE").error.code == "LEGACY_CODE"


def test_envelopes_have_no_field_outside_their_tag():
    assert not hasattr(ok(1), "error")
    assert not hasattr(fail("x"), "data")


def test_predicates():
    assert is_ok(ok(1)) and not is_fail(ok(1))
    assert is_fail(fail("x")) and not is_ok(fail("x"))


def test_fail_from_error_uses_user_facing_text():
    error = not_found("Product", "abc").error
    envelope = fail_from_error(error)
    assert isinstance(envelope, ApiFailure)
    assert envelope.error.message == ErrorCode.NOT_FOUND.user_message
    assert envelope.error.code == "NOT_FOUND"
    assert envelope.error.details == {"resource": "Product", "id": "abc"}


def test_server_error_details_are_not_exposed():
    error = db_error("UNIQUE constraint failed: users.email", table="users").error
    envelope = fail_from_error(error)
    assert envelope.error.details is None
    assert "constraint" not in envelope.error.message


def test_field_errors_are_published_with_validation_failures():
    error = validation_error(field_errors={"email": "Invalid email"}).error
    assert fail_from_error(error).error.details == {"field_errors": {"email": "Invalid email"}}


def test_from_result():
    assert isinstance(from_result(Ok([1])), ApiSuccess)
    assert from_result(not_found("User")).error.code == "NOT_FOUND"


class TestActionResponse:
    def test_success(self):
        response = action_ok("Signed in", {"id": 1})
        assert response.to_dict() == {"success": True, "message": "Signed in", "data": {"id": 1}}

    def test_failure_with_field_errors(self):
        response = action_fail("Validation error", {"password": "Too short"})
        assert response.to_dict() == {
            "success": False,
            "message": "Validation error",
            "field_errors": {"password": "Too short"},
        }

    def test_failure_cannot_carry_data(self):
        with pytest.raises(ValueError):
            ActionResponse(success=False, message="x", data={"leak": True})

    def test_success_cannot_carry_field_errors(self):
        with pytest.raises(ValueError):
            ActionResponse(success=True, message="x", field_errors={"a": "b"})

    def test_field_errors_are_read_only(self):
        response = action_fail("Validation error", {"password": "Too short"})
        with pytest.raises(TypeError):
            response.field_errors["password"] = "ok"  # type: ignore[index]
        assert response.to_dict()["field_errors"] == {"password": "Too short"}

    def test_from_error_uses_user_message(self):
        response = action_from_error(AppError(ErrorCode.TOKEN_EXPIRED, "exp < now"))
        assert response.success is False
        assert response.message == ErrorCode.TOKEN_EXPIRED.user_message
        assert response.field_errors is None

    def test_from_result(self):
        assert action_from_result(Ok(None), "Email verified").to_dict() == {
            "success": True,
            "message": "Email verified",
        }
        failed = action_from_result(validation_error(field_errors={"name": "Required"}), "unused")
        assert failed.field_errors == {"name": "Required"}
