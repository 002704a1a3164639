"""API I/O models for MatLinks."""
