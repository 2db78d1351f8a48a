"""
Unit tests for fault classification
"""

import pytest

from aiofaults import (
    ApplicationErrorType,
    ApplicationException,
    Classification,
    ExceptionCategory,
    ExceptionClassifier,
    ExceptionLevel,
    FaultView,
    HttpFault,
)
from aiofaults.classifier import level_for_http_status, level_from_message


@pytest.fixture
def classifier():
    return ExceptionClassifier()


class TestFaultView:
    """Test structural fault inspection"""

    def test_mapping_fields(self):
        """Test that mapping keys are exposed as fields"""
        view = FaultView({"status": 404, "message": "gone"})
        assert view.get("status") == 404
        assert view.has("message")
        assert not view.has("error_code")

    def test_attribute_fields(self):
        """Test that attributes are exposed as fields"""
        view = FaultView(HttpFault(409, {"detail": "conflict"}))
        assert view.http_status() == 409
        assert view.http_response() == {"detail": "conflict"}

    def test_strings_expose_no_fields(self):
        """Test that str methods are never mistaken for fields"""
        view = FaultView("upper")
        assert not view.has("upper")
        assert view.message == "upper"

    def test_bool_is_not_a_status(self):
        """Test that a boolean status is ignored"""
        assert FaultView({"status": True}).http_status() is None

    def test_message_fallback(self):
        """Test the placeholder message for shapeless faults"""
        assert FaultView(42).message == "Unknown error"


class TestRecognizers:
    """Test the ordered recognizer battery"""

    def test_none_is_unknown(self, classifier):
        """Test that None yields the unknown classification"""
        result = classifier.classify(None)
        assert result == Classification.unknown()
        assert result.code == "UNKNOWN_ERROR"
        assert result.confidence == 0.1
        assert result.category == ExceptionCategory.APPLICATION

    def test_connection_timeout_is_network(self, classifier):
        """Test that a connection timeout is a network fault"""
        result = classifier.classify(TimeoutError("Connection timeout"))
        assert result.category == ExceptionCategory.EXTERNAL
        assert result.level == ExceptionLevel.ERROR
        assert result.code == "NETWORK_ERROR"
        assert result.should_notify

    def test_validation_keywords(self, classifier):
        """Test that validation wording yields a validation fault"""
        result = classifier.classify(ValueError("invalid email address"))
        assert result.category == ExceptionCategory.VALIDATION
        assert result.level == ExceptionLevel.WARN
        assert result.code == "VALIDATION_ERROR"
        assert not result.should_notify

    def test_storage_keywords(self, classifier):
        """Test that storage wording yields an infrastructure fault"""
        result = classifier.classify("duplicate key value violates unique constraint")
        assert result.category == ExceptionCategory.INFRASTRUCTURE
        assert result.code == "DATABASE_ERROR"

    def test_network_error_codes(self, classifier):
        """Test that socket error names are recognized"""
        result = classifier.classify(OSError("ECONNREFUSED 10.0.0.1:5432"))
        assert result.code == "NETWORK_ERROR"

    def test_first_matching_battery_wins(self, classifier):
        """Test that validation beats storage and network for mixed wording"""
        result = classifier.classify(RuntimeError("invalid query timeout"))
        assert result.code == "VALIDATION_ERROR"

        result = classifier.classify(RuntimeError("database timeout"))
        assert result.code == "DATABASE_ERROR"

    def test_http_fault(self, classifier):
        """Test HTTP faults are classified by status"""
        result = classifier.classify(HttpFault(404, {"detail": "missing"}))
        assert result.category == ExceptionCategory.HTTP
        assert result.level == ExceptionLevel.WARN
        assert result.code == "HTTP_404"
        assert result.user_message == "The requested resource does not exist"
        assert result.confidence == 0.9

    def test_http_server_error_notifies(self, classifier):
        """Test that 5xx faults are errors that notify"""
        result = classifier.classify({"status": 503, "response": None})
        assert result.level == ExceptionLevel.ERROR
        assert result.code == "HTTP_503"
        assert result.should_notify

    def test_status_without_response_is_not_http(self, classifier):
        """Test that a bare status field does not make an HTTP fault"""
        result = classifier.classify({"status": 500})
        assert result.category == ExceptionCategory.APPLICATION
        assert result.code == "GENERIC_ERROR"

    def test_application_exception(self, classifier):
        """Test structured application faults are trusted fully"""
        fault = ApplicationException(
            "User 42 not found",
            error_type=ApplicationErrorType.RESOURCE_NOT_FOUND,
            error_code="USER_NOT_FOUND",
            user_message="No such user",
        )
        result = classifier.classify(fault)
        assert result.category == ExceptionCategory.APPLICATION
        assert result.level == ExceptionLevel.WARN
        assert result.code == "USER_NOT_FOUND"
        assert result.user_message == "No such user"
        assert result.confidence == 1.0
        assert not result.should_notify

    def test_application_exception_category_table(self, classifier):
        """Test error_type and severity mapping"""
        fault = ApplicationException(
            "bad input",
            error_type=ApplicationErrorType.VALIDATION,
            error_code="VALIDATION_FAILED",
            severity="critical",
        )
        result = classifier.classify(fault)
        assert result.category == ExceptionCategory.VALIDATION
        assert result.level == ExceptionLevel.FATAL
        assert result.should_notify

    def test_duck_typed_application_fault(self, classifier):
        """Test a mapping with the structured shape is recognized"""
        fault = {
            "error_type": "EXTERNAL_SERVICE",
            "severity": "HIGH",
            "error_code": "PAYMENT_GATEWAY_DOWN",
            "message": "gateway down",
        }
        result = classifier.classify(fault)
        assert result.category == ExceptionCategory.EXTERNAL
        assert result.level == ExceptionLevel.ERROR
        assert result.code == "PAYMENT_GATEWAY_DOWN"

    def test_generic_level_from_message(self, classifier):
        """Test generic faults derive their level from the message"""
        assert classifier.classify(RuntimeError("fatal crash")).level == ExceptionLevel.FATAL
        assert classifier.classify(RuntimeError("something happened")).level == ExceptionLevel.INFO
        assert classifier.classify(RuntimeError("job failed")).code == "GENERIC_ERROR"

    def test_classify_is_idempotent(self, classifier):
        """Test that classifying twice gives the same result"""
        fault = ValueError("field is required")
        assert classifier.classify(fault) == classifier.classify(fault)


class TestClassifierRobustness:
    """Test that classification never raises"""

    def test_unprintable_exception(self, classifier):
        """Test an exception whose str() raises"""
        class Unprintable(Exception):
            def __str__(self):
                raise RuntimeError("no text")

        assert classifier.classify(Unprintable()) == Classification.unknown()

    def test_exploding_attribute(self, classifier):
        """Test a fault whose attribute access raises"""
        class Exploding:
            @property
            def error_type(self):
                raise RuntimeError("boom")

        assert classifier.classify(Exploding()).code == "UNKNOWN_ERROR"

    @pytest.mark.parametrize("fault", [0, 3.5, [], (), b"bytes", object(), {"nested": {"a": 1}}])
    def test_arbitrary_values(self, classifier, fault):
        """Test arbitrary values always classify"""
        result = classifier.classify(fault)
        assert result.category in ExceptionCategory
        assert result.level in ExceptionLevel

    def test_custom_recognizers(self):
        """Test a custom recognizer battery"""
        always = Classification.unknown()
        classifier = ExceptionClassifier(recognizers=(("always", lambda view: True, lambda view: always),))
        assert classifier.recognizer_names == ["always"]
        assert classifier.classify("anything") is always

    def test_default_recognizer_order(self, classifier):
        """Test the built-in recognizer order"""
        assert classifier.recognizer_names == [
            "application", "http", "validation", "storage", "network", "generic",
        ]


class TestLevelHelpers:
    """Test level helper functions"""

    @pytest.mark.parametrize("status,level", [
        (200, ExceptionLevel.INFO),
        (404, ExceptionLevel.WARN),
        (500, ExceptionLevel.ERROR),
    ])
    def test_level_for_http_status(self, status, level):
        """Test HTTP status to level mapping"""
        assert level_for_http_status(status) == level

    def test_level_from_message_is_case_insensitive(self):
        """Test that message keywords ignore case"""
        assert level_from_message("CRITICAL disk") == ExceptionLevel.FATAL
        assert level_from_message("Warning: low memory") == ExceptionLevel.WARN
