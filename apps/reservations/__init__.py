"""Reservations app package.

This app holds the reservation domain: availability calculation against
weekly operating windows and closed periods, the conflict guard that keeps
concurrent requests from double-booking a space, previsits, and the
two-tier approval workflow with its audit log.
"""
