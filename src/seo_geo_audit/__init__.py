"""SEO and GEO audit engine for web pages."""

__version__ = "1.0.0"
