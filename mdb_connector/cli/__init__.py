"""
Command-line interface for MDB_CONNECTOR.
"""
