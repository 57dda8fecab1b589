"""
Tasks service application package.
"""
