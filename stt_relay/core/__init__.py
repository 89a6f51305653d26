"""Outbound capabilities: credential exchange and speech recognition."""
