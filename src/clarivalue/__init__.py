"""
ClariValue - business valuation with a clarification round.

Submit a company's figures or financial statements, answer the questions the
analysis service raises, and get a multi-method, multi-period valuation.
"""

__version__ = "0.1.0"
