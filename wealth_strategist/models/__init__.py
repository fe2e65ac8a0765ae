"""Frozen pydantic domain models: snapshot inputs, findings, records, forecasts."""
