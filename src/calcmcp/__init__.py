# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""calcmcp framework primitives."""

from __future__ import annotations

from . import types
from .completion import CompletionSpec, completion
from .context import Context, get_context
from .prompt import prompt
from .resource import resource
from .resource_template import resource_template
from .results import Failure, Success, not_found
from .server import DispatchConfig, EnvelopeServer, ServerState
from .tool import tool


__version__ = "0.1.0"

__all__ = [
    "EnvelopeServer",
    "DispatchConfig",
    "ServerState",
    "tool",
    "resource",
    "resource_template",
    "prompt",
    "completion",
    "CompletionSpec",
    "Success",
    "Failure",
    "not_found",
    "types",
    "Context",
    "get_context",
    "__version__",
]
