"""Recommendation records, alternatives and conflict resolution."""
