"""Tests for the logout service."""
