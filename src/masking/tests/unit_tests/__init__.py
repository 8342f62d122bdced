"""Unit tests for the masking engine."""
