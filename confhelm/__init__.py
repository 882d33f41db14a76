"""confhelm: typed configuration properties and service lookup."""

__version__ = "0.1.0"
