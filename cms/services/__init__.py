"""
Use cases for the admin panel.

Routers call these services instead of touching the store, the key-value
storage or the admin sessions directly.
"""
