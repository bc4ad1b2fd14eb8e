"""
quote-a-bot: Chat bot for product quotations.

Answers inbound chat commands for a sales operation: quotes products by code,
converts totals with the daily BCV exchange rate, and routes client tier
changes through approval by the sales agents.
"""

__version__ = "0.1.0"
