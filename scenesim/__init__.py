"""2D vehicle simulation on raster tracks with bicycle-model agents and lidar ray casting."""

__version__ = "0.1.0"