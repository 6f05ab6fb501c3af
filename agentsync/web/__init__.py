"""HTTP API over the agentsync workspace."""
