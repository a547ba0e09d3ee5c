"""Per-record projection and page-level derived views."""
