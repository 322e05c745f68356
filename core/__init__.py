"""Core domain logic for evidence-to-rating analysis.

This package contains the business logic and domain models,
isolated from condition-specific rule sets for easy testing and reasoning.
"""
