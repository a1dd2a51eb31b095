"""Package initializer for the seabed exploration backend.

This package serves marine seabed-exploration records (contractors, their
licensed areas and blocks, research cruises, stations, samples, lab results
and media) to a map UI with rich filtering.

- Associates stations with the block polygon that contains them
- Builds a filtered, nested contractor/cruise tree for the map view
- Rolls up per-block and per-contractor statistics
- Caches read paths with tiered time-based expiry
- Re-filters the map tree client-side without refetching

See the module docstrings for details on architecture and usage.
"""
