"""
Adapters that send a rendered prompt to a remote generative model.
"""
