"""spanheat - calendar activity heatmaps from time-tracking spans."""

__version__ = "1.0.0"
