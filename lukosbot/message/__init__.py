"""Platform-agnostic message model.

This package provides:
- address: Chat platform and conversation address
- media: References to binary media (URL, platform file id, raw bytes)
- inbound: Messages received from a platform
- outbound: Messages to send, with attachment helpers
"""
