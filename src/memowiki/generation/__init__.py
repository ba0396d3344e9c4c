"""Artifact generation: backends, retry policy and orchestration."""
