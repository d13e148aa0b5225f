"""
HealthKart Deal Alert System

Polls the HealthKart catalog for supplement deals, filters them against
user-defined criteria and posts consolidated alerts to a Telegram chat,
either on a timer or when triggered over HTTP.
"""

__version__ = "1.0.0"
__author__ = "HealthKart Deal Alert Team"
