"""Data access layer: archive, local store and remote providers."""
