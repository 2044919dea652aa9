"""Unit tests: no network, no shared state; SQLite only in memory or tmp_path."""
