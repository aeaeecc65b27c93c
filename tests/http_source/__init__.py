"""Tests for the HTTP source resolver."""
