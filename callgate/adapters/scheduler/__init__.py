"""Scheduler adapters.

Wrappers never talk to an event loop directly. They schedule timers through
this small abstraction so the same wrapper runs on an asyncio loop in
production and on a virtual clock in tests or simulations.
"""
