"""
Task Eligibility & Reward Engine.

Membership-gated earn-by-task service with a sliding-window rate limiter
and a TTL/LRU cache.
"""

__version__ = "1.0.0"
