"""
HTTP API routers for SaveYourGoblin
"""
