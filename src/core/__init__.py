"""Core domain package for talkwatch.

Core contains the per-session poller, its registry and the write-through
session state without any Telegram, HTTP or storage-specific code, keeping
the polling logic portable.
"""
