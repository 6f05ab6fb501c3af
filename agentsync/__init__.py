"""agentsync: one canonical description of a project's AI-agent tooling.

Keeps skills, MCP server bindings, provider bindings and instruction files
in a single tool-agnostic project record and materializes it onto the
native configuration layout of every supported coding agent.
"""

__version__ = "0.1.0"
