"""
Routes Package
==============
Flask blueprints for the scoring and model lifecycle APIs.
"""
