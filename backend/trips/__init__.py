"""
Trips Module
============

Group fishing trips and the bookings users make on them. The
recommendations app consumes bookings through trips.services.
"""
