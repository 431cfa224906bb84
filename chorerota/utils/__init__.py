"""Date and schedule helpers for ChoreRota."""
