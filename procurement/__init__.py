"""
Procurement letter approval routing.

Routes procurement letters through role-based, amount-tiered approval
chains and keeps an audit log of every transition.
"""

__version__ = "1.0.0"
