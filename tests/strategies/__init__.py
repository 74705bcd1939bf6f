"""Hypothesis strategies for catalogengine property-based testing.

- markup: mixed-content paragraphs with their expected messages

Usage:
    from tests.strategies.markup import mixed_paragraphs
"""
