"""Output sinks for decoded events."""
