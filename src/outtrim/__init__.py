"""Outtrim: keep tool output within size budgets.

Reduces shell, test, build and log output to fit character, byte and line
limits, collapsing repeated content first and keeping the head and tail
when it has to cut.
"""

from outtrim.reduction import ReductionResult, SizeLimits, reduce_text

__version__ = "0.1.0"

__all__ = ["ReductionResult", "SizeLimits", "reduce_text", "__version__"]
