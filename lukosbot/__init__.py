"""lukosbot - a multi-platform chat bot core.

Platform adapters turn chat events into platform-agnostic messages, a
Brigadier-style dispatcher routes command lines to actions, and every command
ships a usage tree that renders to text or to a PNG image.
"""
