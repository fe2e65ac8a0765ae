"""File outputs for recommendations, conflicts and forecasts."""
