"""Tests for ServiceResult and ServiceError."""

import pytest
from pydantic import ValidationError

from notepress.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_defaults(self):
        result = ServiceResult(ok=True, op="generate")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None

    def test_failure_helper(self):
        result = ServiceResult.failure(
            "publish", "AUTH_FAILED", "bad token", detail={"kind": "auth"}, warnings=["w"]
        )
        assert not result.ok
        assert result.op == "publish"
        assert result.error == ServiceError(
            code="AUTH_FAILED", message="bad token", detail={"kind": "auth"}
        )
        assert result.warnings == ["w"]

    def test_frozen(self):
        result = ServiceResult(ok=True, op="x")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_json_round_trip(self):
        result = ServiceResult.failure("x", "NOT_FOUND", "gone")
        assert ServiceResult.model_validate_json(result.model_dump_json()) == result
