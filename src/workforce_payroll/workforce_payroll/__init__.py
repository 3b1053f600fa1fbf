"""Workforce Payroll package.

Organized by feature modules (attendance, timesheets, leaves, payroll,
summaries, ...) with a thin Flask controller layer on top of service and
repository layers.
"""
