"""Archive lifecycle: naming, storage, expiration, deletion and reclamation."""
