"""
Domain Services

Input validation, the clarification workflow and valuation math.
"""
