"""SQLite storage shared by the batch queue and report repositories."""
