"""Time abstraction layer"""

from .clock import Clock, SystemClock, ManualClock, epoch_ms

__all__ = [
    'Clock',
    'SystemClock',
    'ManualClock',
    'epoch_ms',
]
