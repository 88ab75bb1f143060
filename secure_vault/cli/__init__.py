"""Command line interface for Secure Vault."""
