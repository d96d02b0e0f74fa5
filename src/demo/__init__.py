"""Demonstration sequence.

This package seeds the example tables and walks through each
row-set access pattern against them.
"""
