"""
Catalog services: filtering, ranking, aggregation, pagination and recommendations
"""
