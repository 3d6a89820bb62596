"""Clients for external object-storage services."""
