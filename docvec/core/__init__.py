"""
Embedded document store: configuration, SQLite access and the document value model.
"""
