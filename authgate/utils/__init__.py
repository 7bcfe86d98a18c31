"""Shared utilities for authgate."""
