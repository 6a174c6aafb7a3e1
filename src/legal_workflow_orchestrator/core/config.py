"""Core configuration for the orchestrator.

Configuration is loaded from environment variables and a local `.env` file
(if present). Each section has its own prefix so sections can be overridden
independently, e.g. `LEGAL_WORKFLOW_DOCUMENT_DEFAULT_AUTHOR`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from legal_workflow_orchestrator.core.logging import configure_logging


class DocumentConfig(BaseSettings):
    """Configuration for the document registry."""

    default_author: str = Field(
        default="current.user@example.com",
        description="Author recorded on documents created without an explicit author",
    )
    initial_version: str = Field(
        default="1.0.0",
        description="Version assigned to newly created documents",
    )
    strict_document_transitions: bool = Field(
        default=False,
        description=(
            "Enforce the draft -> in-review -> approved/rejected lifecycle. "
            "When false any status may follow any status."
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="LEGAL_WORKFLOW_DOCUMENT_",
        env_file=".env",
        extra="ignore",
    )


class WorkflowConfig(BaseSettings):
    """Configuration for the workflow engine and template resolver."""

    default_template: str = Field(
        default="standard",
        description="Template used when a workflow is attached to a newly created document",
    )
    templates_path: Path | None = Field(
        default=None,
        description="Optional JSON file with additional workflow templates",
    )
    notification_history: int = Field(
        default=200,
        gt=0,
        description="Number of user notifications kept in memory",
    )

    model_config = SettingsConfigDict(
        env_prefix="LEGAL_WORKFLOW_WORKFLOW_",
        env_file=".env",
        extra="ignore",
    )


class OrchestratorConfig(BaseSettings):
    """Main configuration for the orchestrator."""

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug logging for this package",
    )

    documents: DocumentConfig = Field(
        default_factory=DocumentConfig,
        description="Document registry configuration",
    )
    workflow: WorkflowConfig = Field(
        default_factory=WorkflowConfig,
        description="Workflow engine configuration",
    )

    model_config = SettingsConfigDict(
        env_prefix="LEGAL_WORKFLOW_",
        env_file=".env",
        extra="ignore",
    )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        configure_logging(self.log_level, self.log_format)

        if self.debug:
            logging.getLogger("legal_workflow_orchestrator").setLevel(logging.DEBUG)
