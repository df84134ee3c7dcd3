from .continuation import ContinuationWalker, PageParser, WalkerState

__all__ = ["ContinuationWalker", "PageParser", "WalkerState"]
