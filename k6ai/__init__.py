"""k6ai — AI helpers for Postman → k6 load-testing CI."""

__version__ = "0.1.0"
