"""
Persistence adapters.

entity_repository wraps the four content tables; local_storage is the
JSON-file key-value store for admin accounts and panel configuration.
"""
