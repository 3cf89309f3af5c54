"""Comparison worker bridge: isolated, time-bounded pixel comparison."""

from screenshot_compare.bridge.policy import WorkerPolicy
from screenshot_compare.bridge.process import WorkerBridge, parse_reply

__all__ = [
    "WorkerBridge",
    "WorkerPolicy",
    "parse_reply",
]
