"""Adapters implementing the inbound and outbound ports."""
