"""Command-line scripts for working with Neon databases.

Scripts include:
- ``create_ephemeral_db.py``: create a throwaway Neon project and print its URI.
- ``destroy_ephemeral_db.py``: delete a project, a branch, or branches by prefix.
- ``validate_connection.py``: probe ``DATABASE_URL`` over HTTP and a pooled connection.
- ``init_db.py``: create the documents/embeddings schema and indexes.
"""
