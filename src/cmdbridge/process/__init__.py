"""Child process management for bridged sessions."""

from cmdbridge.process.handle import ProcessError, ProcessHandle
from cmdbridge.process.pipes import PipeError, PipePair

__all__ = ["PipeError", "PipePair", "ProcessError", "ProcessHandle"]
