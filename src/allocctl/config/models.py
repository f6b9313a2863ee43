"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, allocctl.toml only contains
overrides. A fresh workspace needs only ``[remote] base_url``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from allocctl.domain.dimensions import DimensionCategory


class RemoteConfig(BaseModel):
    """[remote] section — the ledger back-end."""

    model_config = {"frozen": True}

    base_url: str = "http://localhost:8080"
    prefix: str = "/reporting/allocations"
    timeout: float = 30.0
    retries: int = 2
    api_token: str | None = None


class RulesConfig(BaseModel):
    """[rules] section."""

    model_config = {"frozen": True}

    default_dimension: DimensionCategory = DimensionCategory.COST_CENTER


class ExecutionConfig(BaseModel):
    """[execution] section."""

    model_config = {"frozen": True}

    replace: bool = True


class WorkspaceConfig(BaseModel):
    """[workspace] section."""

    model_config = {"frozen": True}

    dirname: str = ".allocctl"


class AllocConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
