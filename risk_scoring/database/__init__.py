"""
Alert persistence - async SQLAlchemy
"""
