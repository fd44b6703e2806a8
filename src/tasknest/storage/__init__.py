"""
Persistence.

Components:
- kv_store.py: key-value backends (SQLite, in-memory)
- durable_store.py: JSON collection adapter, first-run seeding
"""
