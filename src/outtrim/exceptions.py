"""Outtrim exception hierarchy.

The reduction engine itself raises nothing; these cover the layers around
it (configuration and tool execution).
"""

from __future__ import annotations


class OuttrimError(Exception):
    """Base for all Outtrim exceptions."""


class ToolError(OuttrimError):
    """Tool execution failures."""
