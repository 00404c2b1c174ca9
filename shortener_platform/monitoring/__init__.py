from .activity import ActivityMonitor, SlidingWindow
from .throttle import create_limiter, rate_limit_exceeded_handler

__all__ = ["ActivityMonitor", "SlidingWindow", "create_limiter", "rate_limit_exceeded_handler"]
