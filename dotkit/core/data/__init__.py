"""Static data — the managed resource catalog. Pure data, no logic."""
