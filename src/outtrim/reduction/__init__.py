"""Size reduction for tool output.

Pure functions with no shared state; safe to call concurrently.
"""

from __future__ import annotations

from outtrim.reduction.compress import compress_duplicate_lines as compress_duplicate_lines
from outtrim.reduction.compress import compress_repeated_blocks as compress_repeated_blocks
from outtrim.reduction.metrics import measure as measure
from outtrim.reduction.metrics import within_limits as within_limits
from outtrim.reduction.models import CompressionReport as CompressionReport
from outtrim.reduction.models import ReductionResult as ReductionResult
from outtrim.reduction.models import SizeLimits as SizeLimits
from outtrim.reduction.models import SizeSnapshot as SizeSnapshot
from outtrim.reduction.models import TruncationReport as TruncationReport
from outtrim.reduction.reducer import reduce_text as reduce_text
from outtrim.reduction.truncate import enforce_hard_caps as enforce_hard_caps
from outtrim.reduction.truncate import truncate_by_lines as truncate_by_lines
