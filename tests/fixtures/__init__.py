"""Shared pytest fixtures for the HTTP source test suite."""
