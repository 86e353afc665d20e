"""
Utility modules supporting the authz package
"""
