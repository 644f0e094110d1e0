"""Kintai payroll package.

Feature modules (attendance, leave, payroll, employees, masters) each follow the
same layering: a pure model, a repository Protocol with a MySQL implementation,
a service holding the business rules, and a thin Flask JSON controller.
"""
