"""Core infrastructure shared by modeldb components."""
