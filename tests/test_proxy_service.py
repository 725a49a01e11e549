"""Unit tests for ProxyService orchestration and failure classification."""

import httpx
import pytest

from chat_proxy.core.errors import (
    ConfigurationAppError,
    InternalAppError,
    UpstreamAppError,
    ValidationAppError,
)
from chat_proxy.services.proxy_service import ProxyService


class TestPayloadValidation:
    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            "messages",
            {},
            {"messages": None},
            {"messages": "hi"},
            {"messages": {"role": "user", "content": "hi"}},
        ],
    )
    @pytest.mark.asyncio
    async def test_rejects_missing_or_non_list_field_without_upstream_call(self, payload, stub_adapter_factory) -> None:
        adapter = stub_adapter_factory()
        service = ProxyService(adapter)

        with pytest.raises(ValidationAppError) as exc:
            await service.forward(payload)

        assert exc.value.status_code == 400
        assert exc.value.message == "Messages array is required"
        assert adapter.calls == []

    @pytest.mark.parametrize(
        "payload",
        [
            {"messages": ["hi"]},
            {"messages": [{"role": "user", "content": "hi"}], "model": 5},
            {"messages": [{"role": "user", "content": "hi"}], "stop": 7},
        ],
    )
    @pytest.mark.asyncio
    async def test_any_list_is_forwarded_for_the_provider_to_judge(self, payload, stub_adapter_factory) -> None:
        adapter = stub_adapter_factory()

        await ProxyService(adapter).forward(payload)

        assert adapter.calls == [{"messages": payload["messages"]}]

    @pytest.mark.asyncio
    async def test_empty_list_is_accepted(self, stub_adapter_factory) -> None:
        adapter = stub_adapter_factory()

        await ProxyService(adapter).forward({"messages": []})

        assert adapter.calls == [{"messages": []}]


class TestFailureClassification:
    @pytest.mark.asyncio
    async def test_upstream_error_propagates_unchanged(self, stub_adapter_factory) -> None:
        error = UpstreamAppError(
            code="upstream_request_failed",
            message="Claude API request failed",
            details="upstream down",
            upstream_status=503,
        )
        service = ProxyService(stub_adapter_factory(error=error))

        with pytest.raises(UpstreamAppError) as exc:
            await service.forward({"messages": []})

        assert exc.value is error

    @pytest.mark.asyncio
    async def test_configuration_error_propagates_unchanged(self, stub_adapter_factory) -> None:
        error = ConfigurationAppError(code="x", message="Internal server error", details="KEY missing")
        service = ProxyService(stub_adapter_factory(error=error))

        with pytest.raises(ConfigurationAppError):
            await service.forward({"messages": []})

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("connection refused"),
            ValueError("Expecting value: line 1 column 1 (char 0)"),
            KeyError("choices"),
        ],
    )
    @pytest.mark.asyncio
    async def test_unexpected_errors_become_internal_errors(self, error: Exception, stub_adapter_factory) -> None:
        service = ProxyService(stub_adapter_factory(error=error))

        with pytest.raises(InternalAppError) as exc:
            await service.forward({"messages": []})

        assert exc.value.status_code == 500
        assert exc.value.message == "Internal server error"
        assert exc.value.details == str(error)
        assert exc.value.__cause__ is error
