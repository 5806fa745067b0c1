"""
dashboard/api package marker.
"""
