"""Errors and ports shared by the board and its collaborators."""
