"""
API route handlers: flow actions and health.
"""
