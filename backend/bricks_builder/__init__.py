"""
Bricks Builder agent execution framework
"""
__version__ = "0.1.0"
