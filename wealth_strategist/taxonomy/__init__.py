"""Controlled vocabularies (StrEnums) shared across the pipeline."""
