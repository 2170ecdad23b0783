"""
SubSentry - Source Package

Tracks household subscriptions (OTT, SaaS, gym, food delivery...) and
turns them into monthly/annual spend figures and renewal reminders.

DESIGN PRINCIPLES:
1. One source of truth for money math (finance package)
2. Every write goes straight through to storage
3. A failed write leaves memory exactly as it was
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SubSentry Team"
