"""Key-value stores the board writes through to."""
