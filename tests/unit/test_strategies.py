"""
Unit tests for category strategies
"""

import asyncio

import pytest

from aiofaults import (
    ApplicationErrorType,
    ApplicationException,
    ApplicationExceptionStrategy,
    ExceptionCategory,
    ExceptionContext,
    ExceptionTransformer,
    HttpExceptionStrategy,
    HttpFault,
    NetworkExceptionStrategy,
    StorageExceptionStrategy,
    StrategyConfig,
    sanitize,
)
from aiofaults.strategies import redact_url


@pytest.fixture
def transform(context):
    transformer = ExceptionTransformer()

    def _transform(fault, ctx=None):
        return transformer.transform(fault, ctx or context)

    return _transform


SECRETS = {"password": "hunter2", "token": "tok-123", "secret": "s3cr3t", "visible": "ok"}


class TestSanitize:
    """Test detail sanitization"""

    def test_top_level(self):
        """Test sensitive top-level keys are redacted"""
        result = sanitize(SECRETS)
        assert result["password"] == "[REDACTED]"
        assert result["token"] == "[REDACTED]"
        assert result["secret"] == "[REDACTED]"
        assert result["visible"] == "ok"

    def test_case_insensitive(self):
        """Test key matching ignores case"""
        result = sanitize({"Password": "x", "PRIVATEKEY": "y", "privateKey": "z"})
        assert set(result.values()) == {"[REDACTED]"}

    def test_one_level_deep(self):
        """Test nested mappings are redacted one level down only"""
        result = sanitize({"db": {"password": "x", "deeper": {"password": "y"}}})
        assert result["db"]["password"] == "[REDACTED]"
        assert result["db"]["deeper"] == {"password": "y"}

    def test_lists(self):
        """Test list items are sanitized"""
        assert sanitize([{"token": "t"}, "text"]) == [{"token": "[REDACTED]"}, "text"]

    def test_nested_lists(self):
        """Test lists of mappings under a key are redacted item by item"""
        result = sanitize({"users": [{"name": "a", "password": "hunter2"}, "b"]})
        assert result["users"] == [{"name": "a", "password": "[REDACTED]"}, "b"]

    @pytest.mark.asyncio
    async def test_nested_list_in_strategy_response(self, transform):
        """Test credentials inside nested lists never reach a response"""
        fault = {"message": "database down", "details": {"users": [{"name": "a", "password": "hunter2"}]}}
        result = await StorageExceptionStrategy().handle(transform(fault))
        assert result.success
        assert "hunter2" not in str(result.response)

    def test_does_not_mutate_input(self):
        """Test the original details stay untouched"""
        details = {"password": "x", "nested": {"token": "t"}}
        sanitize(details)
        assert details == {"password": "x", "nested": {"token": "t"}}

    def test_scalars_pass_through(self):
        """Test non-container details are returned as-is"""
        assert sanitize("text") == "text"
        assert sanitize(None) is None

    def test_custom_marker_and_fields(self):
        """Test configured marker and extra denylist entries"""
        strategy = StorageExceptionStrategy(StrategyConfig(redaction_marker="***", sensitive_fields=("ssn",)))
        assert strategy.sanitize({"ssn": "1", "sql": "select"}) == {"ssn": "***", "sql": "***"}


class TestHttpExceptionStrategy:
    """Test the HTTP strategy"""

    def test_identity(self):
        """Test name, priority and category"""
        strategy = HttpExceptionStrategy()
        assert strategy.name == "http-exception-strategy"
        assert strategy.priority == 10
        assert strategy.category == ExceptionCategory.HTTP

    @pytest.mark.asyncio
    async def test_problem_details(self, transform):
        """Test RFC 7807 members"""
        result = await HttpExceptionStrategy().handle(transform(HttpFault(404, {"detail": "missing"})))

        assert result.success
        assert result.action == "handled"
        assert result.strategy == "http-exception-strategy"
        response = result.response
        assert response["type"].endswith("/client-error")
        assert response["title"] == "Not Found"
        assert response["status"] == 404
        assert response["instance"] == "req-1"
        assert response["error_type"] == "HTTP_ERROR"
        assert response["code"] == "HTTP_404"
        assert response["severity"] == "warn"
        assert response["context"]["tenant_id"] == "tenant-1"

    @pytest.mark.asyncio
    async def test_server_error_type(self, transform):
        """Test 5xx problem type and unknown titles"""
        result = await HttpExceptionStrategy().handle(transform(HttpFault(599)))
        assert result.response["type"].endswith("/server-error")
        assert result.response["title"] == "Unknown Error"

    @pytest.mark.asyncio
    async def test_validation_errors_list(self, transform):
        """Test list details are exposed as validation errors"""
        fault = {"status": 422, "response": {}, "details": [{"field": "email", "password": "x"}]}
        result = await HttpExceptionStrategy().handle(transform(fault))
        assert result.response["validation_errors"] == [{"field": "email", "password": "[REDACTED]"}]

    @pytest.mark.asyncio
    async def test_cannot_handle_other_categories(self, transform):
        """Test category mismatch"""
        strategy = HttpExceptionStrategy()
        result = await strategy.handle(transform(TimeoutError("Connection timeout")))
        assert not result.success
        assert result.action == "cannot_handle"
        assert strategy.get_stats().total_handled == 0


class TestApplicationExceptionStrategy:
    """Test the application strategy"""

    @pytest.mark.asyncio
    async def test_code_message_table(self, transform):
        """Test known codes use the message table, never the raw message"""
        fault = ApplicationException(
            "SELECT * FROM users WHERE id=42 returned nothing",
            error_type=ApplicationErrorType.RESOURCE_NOT_FOUND,
            error_code="USER_NOT_FOUND",
        )
        result = await ApplicationExceptionStrategy().handle(transform(fault))
        assert result.success
        assert result.response["error_type"] == "APPLICATION_ERROR"
        assert result.response["message"] == "The user does not exist or has been deleted"
        assert "SELECT" not in str(result.response)

    @pytest.mark.asyncio
    async def test_unknown_code_uses_user_message(self, transform):
        """Test fallback to the classification message"""
        result = await ApplicationExceptionStrategy().handle(transform(RuntimeError("job failed")))
        assert result.response["code"] == "GENERIC_ERROR"
        assert result.response["message"] == "An unexpected error occurred, please try again later"
        assert "job failed" not in str(result.response)

    @pytest.mark.asyncio
    async def test_retry_fields(self, transform):
        """Test retry hints are echoed"""
        fault = ApplicationException(
            "busy",
            error_code="QUOTA_EXCEEDED",
            retryable=True,
            retry_after=12,
        )
        response = (await ApplicationExceptionStrategy().handle(transform(fault))).response
        assert response["retryable"] is True
        assert response["retry_after"] == 12

    @pytest.mark.asyncio
    async def test_recovery_advice_can_be_disabled(self, transform):
        """Test include_recovery_advice=False"""
        strategy = ApplicationExceptionStrategy(StrategyConfig(include_recovery_advice=False))
        response = (await strategy.handle(transform(RuntimeError("job failed")))).response
        assert "recovery_advice" not in response


class TestStorageExceptionStrategy:
    """Test the storage strategy"""

    @pytest.mark.asyncio
    async def test_response(self, transform):
        """Test storage context fields and sanitized details"""
        ctx = ExceptionContext(
            tenant_id="t",
            custom_data={"database": "orders", "table": "invoices", "operation": "insert"},
        )
        fault = {
            "message": "database write failed",
            "details": {"sql": "INSERT ...", "statement": "INSERT ...", "rows": 0},
        }
        result = await StorageExceptionStrategy().handle(transform(fault, ctx))

        assert result.success
        response = result.response
        assert response["error_type"] == "DATABASE_ERROR"
        assert response["code"] == "DATABASE_ERROR"
        assert response["message"] == "The database operation failed, please try again later"
        assert response["context"]["database"] == "orders"
        assert response["context"]["table"] == "invoices"
        assert response["context"]["operation"] == "insert"
        assert response["details"] == {"sql": "[REDACTED]", "statement": "[REDACTED]", "rows": 0}
        assert "write failed" not in str(response)

    @pytest.mark.asyncio
    async def test_known_code(self, transform):
        """Test the storage message table"""
        fault = ApplicationException(
            "deadlock detected",
            error_type=ApplicationErrorType.INFRASTRUCTURE,
            error_code="DB_DEADLOCK",
        )
        response = (await StorageExceptionStrategy().handle(transform(fault))).response
        assert response["message"] == "A database deadlock occurred, please try again later"


class TestNetworkExceptionStrategy:
    """Test the network strategy"""

    @pytest.mark.asyncio
    async def test_response(self, transform):
        """Test network context fields and URL redaction"""
        ctx = ExceptionContext(custom_data={"endpoint": "/pay", "method": "POST", "timeout": 5})
        fault = {
            "message": "network timeout",
            "details": {
                "url": "https://api.example.com/pay?token=abc&page=2",
                "proxyAuth": "basic xyz",
            },
        }
        result = await NetworkExceptionStrategy().handle(transform(fault, ctx))

        assert result.success
        response = result.response
        assert response["error_type"] == "NETWORK_ERROR"
        assert response["context"]["endpoint"] == "/pay"
        assert response["context"]["method"] == "POST"
        assert response["context"]["timeout"] == 5
        assert response["details"]["proxyAuth"] == "[REDACTED]"
        assert "abc" not in response["details"]["url"]
        assert "token=[REDACTED]" in response["details"]["url"]
        assert "page=2" in response["details"]["url"]

    @pytest.mark.asyncio
    async def test_endpoint_is_redacted(self, transform):
        """Test credentials in the endpoint query string are not echoed"""
        ctx = ExceptionContext(custom_data={"endpoint": "https://api.example.com/x?token=abc&page=1"})
        result = await NetworkExceptionStrategy().handle(transform("network down", ctx))
        endpoint = result.response["context"]["endpoint"]
        assert "abc" not in endpoint
        assert "token=[REDACTED]" in endpoint
        assert "page=1" in endpoint

    def test_redact_url(self):
        """Test query parameter redaction"""
        assert redact_url("https://h/p?q=1") == "https://h/p?q=1"
        assert redact_url("https://h/p?Key=1&a=b") == "https://h/p?Key=[REDACTED]&a=b"
        assert redact_url("not a url") == "not a url"


class TestSensitiveFieldsInEveryStrategy:
    """Test that no strategy leaks credentials"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy_cls,fault", [
        (HttpExceptionStrategy, {"status": 400, "response": {}}),
        (ApplicationExceptionStrategy, {"message": "job failed"}),
        (StorageExceptionStrategy, {"message": "database down"}),
        (NetworkExceptionStrategy, {"message": "network down"}),
    ])
    async def test_redacts_credentials(self, transform, strategy_cls, fault):
        """Test password, token and secret are redacted"""
        result = await strategy_cls().handle(transform({**fault, "details": dict(SECRETS)}))
        assert result.success
        details = result.response["details"]
        assert details["password"] == "[REDACTED]"
        assert details["token"] == "[REDACTED]"
        assert details["secret"] == "[REDACTED]"
        for value in SECRETS.values():
            if value != "ok":
                assert value not in str(result.response)


class TestStrategyLifecycle:
    """Test enable state and statistics"""

    @pytest.mark.asyncio
    async def test_disabled_strategy(self, transform):
        """Test a disabled strategy neither builds nor counts"""
        strategy = NetworkExceptionStrategy()
        strategy.disable()

        result = await strategy.handle(transform(TimeoutError("Connection timeout")))
        assert not result.success
        assert result.action == "strategy_disabled"
        assert strategy.get_stats().total_handled == 0

        strategy.enable()
        result = await strategy.handle(transform(TimeoutError("Connection timeout")))
        assert result.success

    def test_initially_disabled_by_config(self):
        """Test StrategyConfig.enabled"""
        assert not HttpExceptionStrategy(StrategyConfig(enabled=False)).enabled

    @pytest.mark.asyncio
    async def test_builder_failure(self, transform):
        """Test a failing response builder is reported, not raised"""
        class Broken(ApplicationExceptionStrategy):
            def build_response(self, exception):
                raise KeyError("missing template")

        strategy = Broken()
        result = await strategy.handle(transform(RuntimeError("job failed")))
        assert not result.success
        assert result.action == "strategy_failed"
        assert "missing template" in result.reason
        stats = strategy.get_stats()
        assert stats.total_handled == 1
        assert stats.failure_count == 1

    @pytest.mark.asyncio
    async def test_stats(self, transform):
        """Test counters, running average and reset"""
        strategy = ApplicationExceptionStrategy()
        exc = transform(RuntimeError("job failed"))
        await asyncio.gather(*(strategy.handle(exc) for _ in range(10)))

        stats = strategy.get_stats()
        assert stats.total_handled == 10
        assert stats.success_count == 10
        assert stats.average_processing_time >= 0
        assert stats.last_processed_at is not None
        assert stats.to_dict()["success_rate"] == 1.0

        strategy.reset_stats()
        assert strategy.get_stats().total_handled == 0

    def test_stats_snapshot_is_detached(self):
        """Test get_stats returns a copy"""
        strategy = ApplicationExceptionStrategy()
        snapshot = strategy.get_stats()
        snapshot.total_handled = 99
        assert strategy.get_stats().total_handled == 0
