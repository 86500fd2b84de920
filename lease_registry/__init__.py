"""
Lease Registry

A property registry and leasing state machine with:
- Sequential property indices that are never reused
- Offer -> sign -> active -> ended lease lifecycle
- Termination requests gated by a cooling-off period
- Manager-adjudicated complaints
- A hash-chained activity log of every state change
"""

__version__ = "0.1.0"
