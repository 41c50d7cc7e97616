"""Workflow error taxonomy."""


class WorkflowError(Exception):
    """Base class for every error raised by the workflow engine"""

    kind = "error"


class ConfigError(WorkflowError):
    """Required block configuration is missing or malformed"""

    kind = "config"


class AuthError(WorkflowError):
    """Integration behind a block is not authenticated"""

    kind = "auth"


class ExternalCallError(WorkflowError):
    """Sender or oracle call failed (network, provider, timeout)"""

    kind = "external"


class GraphError(WorkflowError):
    """Graph is malformed or a link references a missing block"""

    kind = "graph"


class CoordinationError(WorkflowError):
    """Execution machinery itself failed; the whole record is failed"""

    kind = "coordination"
