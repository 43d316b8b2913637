"""
Lambda handlers for the horoscope HTTP API.
"""
