"""
Application services
"""
