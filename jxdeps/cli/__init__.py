"""Command implementations for the jxdeps CLI."""
