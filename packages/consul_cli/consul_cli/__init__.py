"""Command-line interface for the Consul Client SDK."""
