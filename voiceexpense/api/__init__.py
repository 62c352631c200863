"""
HTTP surface for the extraction pipeline.
"""
