"""Terminal presentation of view state."""
