"""Tests for config models — defaults and sparse overrides."""

import pytest
from pydantic import ValidationError

from allocctl.config.models import AllocConfig, ExecutionConfig, RemoteConfig
from allocctl.domain.dimensions import DimensionCategory


class TestAllocConfig:
    def test_full_defaults(self) -> None:
        """Fresh AllocConfig has sensible defaults for all sections."""
        cfg = AllocConfig()
        assert cfg.remote.base_url == "http://localhost:8080"
        assert cfg.remote.prefix == "/reporting/allocations"
        assert cfg.remote.timeout == 30.0
        assert cfg.remote.api_token is None
        assert cfg.rules.default_dimension is DimensionCategory.COST_CENTER
        assert cfg.execution.replace is True
        assert cfg.workspace.dirname == ".allocctl"

    def test_sparse_override(self) -> None:
        """Only the given keys change; siblings keep their defaults."""
        cfg = AllocConfig.model_validate({"remote": {"retries": 5}})
        assert cfg.remote.retries == 5
        assert cfg.remote.base_url == "http://localhost:8080"
        assert cfg.execution == ExecutionConfig()

    def test_dimension_from_wire_value(self) -> None:
        cfg = AllocConfig.model_validate({"rules": {"default_dimension": "profitcenter"}})
        assert cfg.rules.default_dimension is DimensionCategory.PROFIT_CENTER

    def test_frozen(self) -> None:
        cfg = RemoteConfig()
        with pytest.raises(ValidationError):
            cfg.retries = 0  # type: ignore[misc]
