"""Realtime INSERT change feeds for VentureNest.

Provides the RealtimeHub that gateways publish inserts to, and the
Subscription handle returned to subscribers.
"""

from venturenest.realtime.hub import InsertCallback, RealtimeHub, Subscription

__all__ = ["InsertCallback", "RealtimeHub", "Subscription"]
