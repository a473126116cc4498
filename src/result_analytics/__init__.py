"""
Result Analytics - GPA/CGPA/YGPA aggregation, improvement reconciliation and cohort statistics
"""

__version__ = "0.3.0"
