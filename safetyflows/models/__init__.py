"""
Model-facing building blocks: schemas, prompt templates and provider adapters.
"""
