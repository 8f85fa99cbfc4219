"""Command-line interface (`ghsync`)."""
