"""Orchestration of linked wearable-provider OAuth credentials."""
