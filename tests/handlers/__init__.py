"""Tests for HTTP handlers."""
