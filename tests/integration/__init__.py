"""
Integration tests for docquery.

These tests run queries end to end: planning, dispatch to a backend,
paging and local filter evaluation.
"""
