"""
Helpers shared by the engine services
"""
