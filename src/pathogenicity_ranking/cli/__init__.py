"""Command-line interface for pathogenicity-ranking."""
