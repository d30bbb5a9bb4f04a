"""
billhook Webhooks Module

Verification, classification and dispatch of Stripe billing events.
"""

from .dispatcher import WebhookDispatcher, customer_id_of, free_downgrade_key
from .factory import build_client_records, build_dispatcher
from .plans import plan_table, resolve_plan_key
from .verifier import SignatureVerifier, sign_payload

__all__ = [
    "SignatureVerifier",
    "WebhookDispatcher",
    "build_client_records",
    "build_dispatcher",
    "customer_id_of",
    "free_downgrade_key",
    "plan_table",
    "resolve_plan_key",
    "sign_payload",
]
