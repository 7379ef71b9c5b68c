"""Command handling for lukosbot.

This package provides:
- grammar: Syntax description nodes (literal, argument, choice, optional...)
- dispatcher: Execution tree, argument types and the command dispatcher
- source: The capability handle passed to command actions
- usage: Usage trees built with a fluent builder
- usage_text: Usage tree to text / markdown lines
- usage_image: Rendered lines to PNG
- usage_output: Text or image delivery of usage help
- registry: Bot command contract and registry
"""
