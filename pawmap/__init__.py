"""PawMap - geospatial filtering and clustering engine for the map screens."""
