"""Container harness and coverage collection services."""
