from .api_football_collector import APIFootballCollector
from .base import DataCollector, RateLimiter

__all__ = ["APIFootballCollector", "DataCollector", "RateLimiter"]
