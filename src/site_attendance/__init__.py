"""Site Attendance package.

Feature modules (workers, attendance, verification, ...) with a thin Flask
controller layer over service and repository layers.
"""
