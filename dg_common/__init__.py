"""Shared building blocks for datadget services."""
