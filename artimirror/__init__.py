"""Mirror artifact repository directory listings to local storage."""

__version__ = "1.0.0"
