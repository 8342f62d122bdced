"""Tests for the masking engine."""
