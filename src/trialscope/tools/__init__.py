"""Tool catalog and dispatcher."""
