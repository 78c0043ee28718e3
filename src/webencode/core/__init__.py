"""Core utilities shared across webencode modules."""
