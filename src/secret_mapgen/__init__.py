"""secret_mapgen - deploy and drive the map-generator contract on Secret Network."""

__version__ = "0.1.0"
