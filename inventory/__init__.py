"""Product inventory backend with CSV import/export."""

__version__ = "0.1.0"
