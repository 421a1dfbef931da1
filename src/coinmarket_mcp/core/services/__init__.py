"""
Service layer: upstream clients, gateway, discovery pipeline, ranking and tools.
"""
