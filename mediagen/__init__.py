"""mediagen: command-line clients for cloud media generation APIs."""

__version__ = "0.1.0"
