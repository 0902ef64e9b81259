"""
Logs Module - Black Box Interface

Purpose: Follow pod logs across connection failures and pod restarts
Interface: LogStreamer.stream() -> LogStream (stop(), join(), sink)
Hidden: Reconnect loop, retry wait, cancellation of in-flight transfers
"""

from .streamer import LogBuffer, LogStream, LogStreamer, Sink

__all__ = ["LogBuffer", "LogStream", "LogStreamer", "Sink"]
