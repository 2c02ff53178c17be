"""Internal helpers shared across modeldb subpackages."""
