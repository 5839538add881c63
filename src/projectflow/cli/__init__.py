"""Command-line sub-commands for Projectflow."""
