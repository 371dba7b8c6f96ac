"""
Engagement Engine
=================
Predicts short-form content engagement and adapts its scoring weights
from observed outcomes.
"""

__version__ = "1.0.0"
