"""
Unit tests for the exception hierarchy and error payloads.
"""

from pairchat.error_types import ErrorMessages, ErrorType, create_websocket_error_response
from pairchat.exceptions import (
    ErrorContext,
    IdentityValidationError,
    InboundMessageError,
    PairChatError,
    SessionInvariantError,
)


class TestPairChatError:
    """Test cases for PairChatError and subclasses."""

    def test_to_dict(self):
        """Test the serialized form carries message, details and context."""
        error = PairChatError(
            "boom", ErrorContext(connection_id="c1", event_type="register"), details={"k": 1}, user_friendly="Oops"
        )

        result = error.to_dict()

        assert result["error_type"] == "PairChatError"
        assert result["message"] == "boom"
        assert result["user_friendly"] == "Oops"
        assert result["details"] == {"k": 1}
        assert result["context"]["connection_id"] == "c1"

    def test_default_context(self):
        """Test a context is created when none is given."""
        error = PairChatError("boom")

        assert isinstance(error.context, ErrorContext)
        assert error.context.connection_id is None

    def test_identity_validation_field(self):
        """Test the failing field is recorded."""
        error = IdentityValidationError("bad attribute", field_name="attribute")

        assert error.field_name == "attribute"
        assert error.details["field"] == "attribute"

    def test_inbound_message_reason(self):
        """Test the rejection reason is recorded."""
        error = InboundMessageError("too big", reason="size_limit_exceeded")

        assert error.reason == "size_limit_exceeded"
        assert error.details["reason"] == "size_limit_exceeded"

    def test_session_invariant_name(self):
        """Test the broken invariant is recorded and the error is a PairChatError."""
        error = SessionInvariantError("asymmetric", invariant="partner_symmetry", details={"connection_id": "c1"})

        assert isinstance(error, PairChatError)
        assert error.invariant == "partner_symmetry"
        assert error.details == {"connection_id": "c1", "invariant": "partner_symmetry"}


class TestErrorTypes:
    """Test cases for websocket error payloads."""

    def test_error_type_values(self):
        """Test wire names of the error types."""
        assert ErrorType.INVALID_IDENTITY.value == "invalid_identity"
        assert ErrorType.MESSAGE_TOO_LARGE.value == "message_too_large"
        assert ErrorType.SERVICE_UNAVAILABLE.value == "service_unavailable"

    def test_create_websocket_error_response(self):
        """Test the payload shape and user-friendly fallback."""
        payload = create_websocket_error_response(ErrorType.UNKNOWN_EVENT, "Unknown event type: typing")

        assert payload == {
            "error_type": "unknown_event",
            "message": "Unknown event type: typing",
            "user_friendly": "Unknown event type: typing",
            "details": {},
        }

    def test_user_friendly_and_details(self):
        """Test explicit user-friendly text and details are kept."""
        payload = create_websocket_error_response(
            ErrorType.INVALID_IDENTITY, "rejected", ErrorMessages.INVALID_IDENTITY, {"field": "identity"}
        )

        assert payload["user_friendly"] == "Please use a valid college email"
        assert payload["details"] == {"field": "identity"}
