"""End-to-end strategy generation."""
