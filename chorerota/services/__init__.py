"""Service layer for ChoreRota scheduling logic."""
