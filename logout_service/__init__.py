"""HTTP service that clicks a page's logout control with a headless browser."""

__version__ = "1.0.0"
