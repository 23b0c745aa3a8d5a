"""HTTP surface of the Ampache server (FastAPI)."""
