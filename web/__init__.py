"""Court Autobook control plane (FastAPI)."""
