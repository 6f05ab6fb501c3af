"""Global registries the sync engine reads from: skills, MCP servers and rules."""
