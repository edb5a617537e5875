"""Core financial calculators.

* ``taxes`` – progressive federal and provincial income tax with a per-bracket
  breakdown and the combined marginal rate.
* ``projection`` – year-by-year simulation of a leveraged HELOC investment
  strategy and its horizon summary.

Both modules are pure: identical inputs always produce identical outputs.
"""

from . import taxes, projection  # noqa: F401

__all__ = ["taxes", "projection"]
