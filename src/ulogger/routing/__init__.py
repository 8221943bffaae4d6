"""Routing — ordered route table, argument binding and request dispatch.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes.
"""
