"""
Shopify Bulk Editor - bulk product field editing for a single store.
"""
