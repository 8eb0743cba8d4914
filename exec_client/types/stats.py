"""
Client statistics snapshot
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ClientStats:
    """
    Point-in-time view of client activity

    average_latency is the running mean round-trip time in milliseconds
    over requests that produced a response (successful + failed).
    """
    requests_sent: int
    requests_successful: int
    requests_failed: int
    average_latency: float
    connected: bool
    connected_since: datetime
    reconnect_attempts: int

    @property
    def success_rate(self) -> float:
        answered = self.requests_successful + self.requests_failed
        if answered == 0:
            return 0.0
        return self.requests_successful / answered
