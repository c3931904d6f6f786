"""Market protocol core - commitments, lifecycle, betting, resolution, settlement."""
