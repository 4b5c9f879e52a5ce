"""Media dashboard client: polls a media-analysis backend and drives its batch job."""

__version__ = "0.1.0"
