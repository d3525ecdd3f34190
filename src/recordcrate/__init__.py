"""RecordCrate: album reviews, Spotify linking and chart browsing API."""

__version__ = "0.3.0"
