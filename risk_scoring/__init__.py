"""
Real-time transaction risk scoring
Feature extraction, scoring with fallback, score caching and alerting
"""

__version__ = "1.0.0"
