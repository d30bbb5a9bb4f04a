"""
billhook

Stripe billing webhook handler: verifies provider notifications and turns
them into client billing updates and tracking events.
"""

__version__ = "0.1.0"
