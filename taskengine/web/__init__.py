"""
HTTP interface (aiohttp).
"""
