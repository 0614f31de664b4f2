"""Core domain package for adscope.

Core contains keyword extraction, scoring, ad selection, and placement logic
without any model-API or UI-specific code, keeping the business logic portable.
"""
