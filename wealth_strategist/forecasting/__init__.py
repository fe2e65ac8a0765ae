"""Year-by-year net worth projection under three scenarios."""
