"""Client-side filtering for the map view.

The map UI fetches one unfiltered ``MapDataView`` and re-derives every
filtered view locally, so changing a dropdown never costs a round trip.

Submodules:
    - locations: Named rectangular ocean regions used by the location
      filter.
    - filter_engine: Holds the baseline tree, the active predicates and the
      pinned selection, and recomputes the working view.
    - data_sources: Where the engine gets its baseline from, either an
      in-process service or the HTTP API.
"""
