"""
Pydantic schemas for the catalog API
"""
