"""Property search, filtering and personalization service for the Homefinder marketplace."""
