"""Healthcare Staffing package.

This package is organized by feature modules (users, staff, shifts,
attendance, leaves) with a thin Flask controller layer over service and
repository layers.
"""
