"""Students, lesson reports, and report submission."""
