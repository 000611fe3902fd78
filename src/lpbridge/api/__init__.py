"""HTTP API for a bridge domain."""
