"""Core persistence layer for reelnote."""
