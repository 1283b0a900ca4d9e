"""
safetyflows: typed model-invocation flows for the safety-management dashboard.

Each flow validates a structured input, renders it into a prompt, calls a remote
generative model and validates the reply before handing it back to the caller.
"""

__version__ = "0.1.0"
