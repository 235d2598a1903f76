"""
Orderflow - manufacturing order fulfillment backend
"""
