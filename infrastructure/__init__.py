"""
Infrastructure Package
======================
Storage layer behind the SensorHub services.
"""
