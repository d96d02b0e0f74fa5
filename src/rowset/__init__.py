"""Disconnected row sets.

This package holds cached snapshots of tabular data and the join,
filter, and XML export operations built on them.
"""
