"""
FastAPI server actions for the safety flows.

The dashboard calls these endpoints; each one hands the request body to a typed
flow function and turns typed flow failures into HTTP errors.
"""
