"""Concrete adapters for the record store and the upstream data providers."""
