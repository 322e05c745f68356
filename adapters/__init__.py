"""Condition-specific adapters plugged into the core rating engine."""
