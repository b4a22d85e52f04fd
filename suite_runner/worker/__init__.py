"""Worker processes executing a subset of tests."""
