"""wtmigrate: convert git repositories between regular and bare-in-.git layouts."""

__version__ = "0.1.0"
