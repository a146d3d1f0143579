"""Core mathematics and configuration for the totals percentile engine.

This package contains pure, sport-agnostic building blocks:

- ``segments``      - the static catalog of historical time windows
- ``percentiles``   - nearest-rank and weighted percentile estimation
- ``confidence``    - sample-size / recency / roster confidence scoring
- ``sport_config``  - per-sport constants (key roster positions, ESPN paths)
- ``engine_config`` - strategy thresholds and hydration settings
- ``interfaces``    - ABCs and DTOs for the historical-data collaborators
- ``errors``        - the engine's exception taxonomy

Nothing in this package imports from ``totals_edge.services`` or
``totals_edge.models``.  All modules are side-effect-free and unit-testable
in isolation.
"""
