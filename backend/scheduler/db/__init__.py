"""Database Infrastructure — declarative Base shared by models and migrations."""
