"""Application package for the vocabulary article quiz backend."""
