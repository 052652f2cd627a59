"""The bridging protocol between a transport and a child process.

A session runs three activities: the output pump (child -> peer), the
keepalive driver, and the input pump (peer -> child), all owned and
shut down by the session coordinator.
"""

from cmdbridge.bridge.input import InputPump
from cmdbridge.bridge.keepalive import KeepaliveDriver
from cmdbridge.bridge.output import OutputPump
from cmdbridge.bridge.session import SessionCoordinator
from cmdbridge.bridge.signal import CompletionSignal

__all__ = [
    "CompletionSignal",
    "InputPump",
    "KeepaliveDriver",
    "OutputPump",
    "SessionCoordinator",
]
