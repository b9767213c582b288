"""Calculator application built on :class:`calcmcp.server.EnvelopeServer`."""

from __future__ import annotations

from .app import HISTORY_TEMPLATE, CalculatorSettings, create_calculator_server
from .constants import FORMULAS_LIBRARY, MATH_CONSTANTS, SERVER_NAME, SERVER_VERSION


__all__ = [
    "CalculatorSettings",
    "create_calculator_server",
    "HISTORY_TEMPLATE",
    "FORMULAS_LIBRARY",
    "MATH_CONSTANTS",
    "SERVER_NAME",
    "SERVER_VERSION",
]
