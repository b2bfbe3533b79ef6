"""
notifications — Channel-name based notification dispatch.

Sub-modules:
    channels/   — Per-channel send strategies (email, SMS, chat)
    registry    — Channel name → strategy lookup table
    dispatcher  — Single entry point: resolve a channel, invoke its strategy
"""
