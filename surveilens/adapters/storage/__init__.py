"""Workflow files and their watcher."""

from surveilens.adapters.storage.graph_store import GraphStore
from surveilens.adapters.storage.graph_watcher import WorkflowFileHandler, start_graph_watcher

__all__ = ["GraphStore", "WorkflowFileHandler", "start_graph_watcher"]
