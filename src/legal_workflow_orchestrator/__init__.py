"""Legal Workflow Orchestrator.

The workflow orchestration core for legal documents:
- an in-process event bus
- a document registry owning lifecycle status
- per-document approval workflows with aggregate status rollup
"""

__version__ = "0.1.0"

from legal_workflow_orchestrator.core.config import OrchestratorConfig
from legal_workflow_orchestrator.core.orchestrator import Orchestrator

__all__ = ["__version__", "Orchestrator", "OrchestratorConfig"]
