"""Routing — route values, route collections, overrides, and the router.

Routes describe database operations without performing them. The router
answers each call from its overrides (most recent first) or by executing
the resolved route.
"""
