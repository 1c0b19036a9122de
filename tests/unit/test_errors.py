"""Tests for qm_common.errors and qm_common.response."""

from types import SimpleNamespace

from src.qm_common.errors import (
    NO_LONGER_AVAILABLE,
    AppError,
    ConfirmationCodeMismatchError,
    DuplicateOpenRequestError,
    ForbiddenError,
    IncompleteConfirmationError,
    InvalidBidError,
    InvalidGroupError,
    InvalidTransitionError,
    NotFoundError,
    OrderNotFoundError,
    QuoteNoLongerValidError,
    QuoteRequestNotFoundError,
    RequestNotOpenError,
    RoleRequiredError,
)
from src.qm_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_custom_http_status(self) -> None:
        err = AppError(code=3003, message="Duplicate", http_status=409)
        assert err.http_status == 409

    def test_is_exception(self) -> None:
        err = AppError(code=1001, message="test")
        assert isinstance(err, Exception)


class TestSpecificErrors:
    def test_invalid_group(self) -> None:
        err = InvalidGroupError("own listings")
        assert err.code == 2001
        assert err.http_status == 422
        assert "own listings" in err.message

    def test_request_not_found_is_not_found(self) -> None:
        err = QuoteRequestNotFoundError("qr_abc")
        assert isinstance(err, NotFoundError)
        assert err.code == 3001
        assert err.http_status == 404
        assert "qr_abc" in err.message

    def test_order_not_found(self) -> None:
        err = OrderNotFoundError("order-abc")
        assert err.code == 5001
        assert err.http_status == 404

    def test_race_losses_carry_refresh_hint(self) -> None:
        for err in (RequestNotOpenError("qr_1"), QuoteNoLongerValidError("q-1")):
            assert err.http_status == 409
            assert err.message.startswith(NO_LONGER_AVAILABLE)

    def test_duplicate_open_request(self) -> None:
        err = DuplicateOpenRequestError("seller-1", "qr_1")
        assert err.code == 3003
        assert err.http_status == 409
        assert "seller-1" in err.message

    def test_invalid_bid(self) -> None:
        err = InvalidBidError("fee must be positive")
        assert err.code == 4002
        assert err.http_status == 422

    def test_invalid_transition(self) -> None:
        err = InvalidTransitionError("SHIPPED", "CANCELLED")
        assert err.code == 5002
        assert "SHIPPED" in err.message
        assert "CANCELLED" in err.message

    def test_confirmation_errors(self) -> None:
        assert IncompleteConfirmationError("code").code == 5003
        assert ConfirmationCodeMismatchError().code == 5004

    def test_role_required_is_forbidden(self) -> None:
        err = RoleRequiredError("PROVIDER")
        assert isinstance(err, ForbiddenError)
        assert err.code == 1002
        assert err.http_status == 403


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"id": "abc"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": "abc"}

    def test_error(self) -> None:
        resp = error_response(4003, NO_LONGER_AVAILABLE)
        assert resp.code == 4003
        assert resp.message == NO_LONGER_AVAILABLE
        assert resp.data is None

    def test_has_timestamp_and_request_id(self) -> None:
        resp = ApiResponse()
        assert resp.timestamp
        assert resp.request_id.startswith("req_")

    def test_error_echoes_middleware_request_id(self) -> None:
        request = SimpleNamespace(state=SimpleNamespace(request_id="req_0123456789ab"))
        resp = error_response(4003, NO_LONGER_AVAILABLE, request)  # type: ignore[arg-type]
        assert resp.request_id == "req_0123456789ab"

    def test_untagged_request_keeps_generated_id(self) -> None:
        request = SimpleNamespace(state=SimpleNamespace())
        resp = success_response(None, request)  # type: ignore[arg-type]
        assert resp.request_id.startswith("req_")
