"""Content admin panel for the marketing website."""
