"""Core domain package for tidings.

Core contains signal classification, call/badge state machines, and
deduplication logic without any page, UI, or transport-specific code, keeping
the business logic portable.
"""
