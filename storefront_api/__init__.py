"""Storefront Payments API - Stripe payment intents and order confirmation emails"""

__version__ = "1.0.0"
