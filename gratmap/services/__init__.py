"""Core services: mapping, change-sets, aggregation, payloads and state."""
