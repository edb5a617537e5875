"""Smith Manoeuvre calculator.

Tax-bracket and projection calculators for borrowing against a HELOC to
invest, plus the Streamlit components that drive them.
"""

__version__ = "0.1.0"
