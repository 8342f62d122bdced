"""Masking engine core: randomness, converters, rule chains and the orchestrator."""
