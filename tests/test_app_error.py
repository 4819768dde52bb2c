"""Tests for AppError values, builders and the internal Result type."""

from __future__ import annotations

import dataclasses

import pytest

from core.errors import (
    AppError,
    AppErrorException,
    Err,
    ErrorCode,
    Ok,
    already_exists,
    ensure,
    from_exception,
    internal_error,
    invalid_credentials,
    is_auth_error,
    is_error_code,
    is_operational_error,
    is_validation_error,
    missing_field,
    not_found,
    require,
    sequence_results,
    try_result,
    try_result_async,
    validation_error,
)


@pytest.mark.parametrize("code", list(ErrorCode))
def test_defaults_come_from_the_taxonomy(code):
    error = AppError(code)
    assert error.code is code
    assert error.message == code.default_message
    assert error.status_code == code.status_code
    assert error.details is None


def test_explicit_values_round_trip_unchanged():
    details = {"field": "email", "attempts": [1, 2]}
    error = AppError(ErrorCode.CONFLICT, "Cart changed", details)
    assert error.code is ErrorCode.CONFLICT
    assert error.message == "Cart changed"
    assert error.details is details


def test_empty_message_is_kept_as_given():
    error = AppError(ErrorCode.NOT_FOUND, "", {"k": 1})
    assert error.message == ""
    assert error.details == {"k": 1}


def test_code_may_be_given_as_wire_string():
    assert AppError("NOT_FOUND").code is ErrorCode.NOT_FOUND


def test_unknown_code_is_rejected():
    with pytest.raises(ValueError):
        AppError("NOT_A_CODE")


def test_errors_are_immutable():
    error = AppError(ErrorCode.NOT_FOUND)
    with pytest.raises(dataclasses.FrozenInstanceError):
        error.message = "changed"  # type: ignore[misc]


def test_field_errors_are_read_only():
    source = {"email": "Invalid email"}
    error = AppError(ErrorCode.VALIDATION_ERROR, field_errors=source)
    with pytest.raises(TypeError):
        error.field_errors["email"] = "changed"  # type: ignore[index]
    source["email"] = "changed"
    assert error.field_errors == {"email": "Invalid email"}
    assert error.to_dict()["field_errors"] == {"email": "Invalid email"}


def test_status_code_is_derived_not_stored():
    fields = {f.name for f in dataclasses.fields(AppError)}
    assert "status_code" not in fields


def test_equality_ignores_context_and_cause():
    a = AppError(ErrorCode.NOT_FOUND, "gone", {"id": 1})
    b = AppError(ErrorCode.NOT_FOUND, "gone", {"id": 1}, cause=KeyError("id"))
    assert a == b
    assert a.context.correlation_id != b.context.correlation_id
    assert a != AppError(ErrorCode.NOT_FOUND, "gone", {"id": 2})


def test_with_context_returns_a_new_value():
    error = AppError(ErrorCode.UNAUTHORIZED)
    stamped = error.with_context(origin="api.orders", user_id="u1")
    assert stamped.context.origin == "api.orders"
    assert stamped.context.user_id == "u1"
    assert error.context.origin == ""
    assert stamped.context.correlation_id == error.context.correlation_id


def test_chain_keeps_the_cause():
    cause = RuntimeError("socket closed")
    error = AppError(ErrorCode.EXTERNAL_SERVICE_ERROR).chain(cause)
    assert error.cause is cause


def test_to_dict_shape():
    error = AppError(
        ErrorCode.VALIDATION_ERROR,
        field_errors={"email": "Invalid email"},
    ).with_context(origin="api.auth")
    data = error.to_dict()
    assert data["code"] == "VALIDATION_ERROR"
    assert data["status"] == 400
    assert data["category"] == "validation"
    assert data["context"] == "api.auth"
    assert data["field_errors"] == {"email": "Invalid email"}
    assert "details" not in data


def test_exception_wrapper_carries_the_value():
    error = AppError(ErrorCode.FORBIDDEN)
    exc = AppErrorException(error)
    assert exc.error is error
    assert "FORBIDDEN" in str(exc)


def test_predicates_accept_errors_and_wrapped_errors():
    auth = AppError(ErrorCode.TOKEN_EXPIRED)
    assert is_auth_error(auth)
    assert is_auth_error(AppErrorException(auth))
    assert is_error_code(auth, ErrorCode.TOKEN_EXPIRED)
    assert not is_validation_error(auth)
    assert is_validation_error(AppError(ErrorCode.MISSING_FIELD))
    assert not is_auth_error(ValueError("nope"))


def test_internal_errors_are_not_operational():
    assert not is_operational_error(internal_error("boom").error)
    assert is_operational_error(not_found("User").error)


class TestBuilders:
    def test_not_found_message_and_details(self):
        result = not_found("Product", "floral-midi-dress", origin="catalog")
        assert isinstance(result, Err)
        error = result.error
        assert error.code is ErrorCode.NOT_FOUND
        assert error.message == "Product not found: floral-midi-dress"
        assert error.details == {"resource": "Product", "id": "floral-midi-dress"}
        assert error.context.origin == "catalog"

    def test_none_details_are_dropped(self):
        assert already_exists("Email").error.details == {"resource": "Email"}

    def test_validation_error_carries_field_errors(self):
        error = validation_error(field_errors={"name": "Name is required"}).error
        assert error.field_errors == {"name": "Name is required"}
        assert error.status_code == 400

    def test_missing_field(self):
        error = missing_field("email").error
        assert error.code is ErrorCode.MISSING_FIELD
        assert error.message == "email is required"

    def test_invalid_credentials_uses_default_message(self):
        error = invalid_credentials().error
        assert error.message == ErrorCode.INVALID_CREDENTIALS.default_message


class TestResult:
    def test_ok_map_and_unwrap(self):
        assert Ok(2).map(lambda x: x * 3).unwrap() == 6

    def test_err_short_circuits(self):
        failure = not_found("User")
        assert failure.map(lambda x: x * 3) is failure
        assert failure.flat_map(lambda x: Ok(x)) is failure
        assert failure.unwrap_or("fallback") == "fallback"
        with pytest.raises(ValueError):
            failure.unwrap()

    def test_match(self):
        assert Ok(1).match(ok=lambda v: "ok", err=lambda e: "err") == "ok"
        assert not_found().match(ok=lambda v: "ok", err=lambda e: e.code) is ErrorCode.NOT_FOUND

    def test_try_result_captures_the_exception(self):
        result = try_result(lambda: int("x"), code=ErrorCode.INVALID_FORMAT)
        assert result.is_err()
        assert result.error.code is ErrorCode.INVALID_FORMAT
        assert isinstance(result.error.cause, ValueError)

    def test_from_exception_defaults_to_internal_error(self):
        error = from_exception(KeyError("k")).error
        assert error.code is ErrorCode.INTERNAL_ERROR
        assert error.operational is False

    def test_sequence_results_fails_fast(self):
        assert sequence_results([Ok(1), Ok(2)]) == Ok([1, 2])
        failure = not_found("A")
        assert sequence_results([Ok(1), failure, not_found("B")]) == failure

    def test_ensure_and_require(self):
        error = AppError(ErrorCode.FORBIDDEN)
        assert ensure(True, error) == Ok(None)
        assert ensure(False, error) == Err(error)
        assert require("x", error) == Ok("x")
        assert require(None, error) == Err(error)


def test_with_details_and_error_id():
    error = AppError(ErrorCode.CONFLICT).with_details({"version": 3})
    assert error.details == {"version": 3}
    assert error.error_id == f"CONFLICT:{error.context.correlation_id}"


async def test_async_helpers():
    async def fetch():
        return 41

    async def boom():
        raise TimeoutError("upstream")

    assert await try_result_async(fetch) == Ok(41)
    failed = await try_result_async(boom, code=ErrorCode.EXTERNAL_SERVICE_ERROR)
    assert failed.error.code is ErrorCode.EXTERNAL_SERVICE_ERROR

    async def inc(x):
        return Ok(x + 1)

    assert await Ok(41).flat_map_async(inc) == Ok(42)
    missing = not_found("X")
    assert await missing.flat_map_async(inc) is missing
