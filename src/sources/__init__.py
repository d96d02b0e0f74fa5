"""Tabular sources.

This package adapts query results, Arrow tables, and exported
documents into the forward-only interface snapshots populate from.
"""
