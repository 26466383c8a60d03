"""Slot aggregation service: N async provider jobs merged into one ordered record."""
