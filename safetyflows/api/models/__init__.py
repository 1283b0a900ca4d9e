"""
Pydantic models for API request/response envelopes.

Flow inputs and outputs keep their own schemas; these only wrap them.
"""
