"""Spaces app package.

Holds rentable spaces, their weekly operating windows and closed periods,
and the schedule configuration reader used by availability calculations.
"""
