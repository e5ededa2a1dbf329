"""Command line interface for the IAM backend SDK."""
