"""Search a job site with a driven browser and keep the listings matching a profile."""

__version__ = "0.1.0"
