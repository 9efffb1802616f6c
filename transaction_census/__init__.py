"""
Transaction & Census Analytics ETL

Batch pipeline that cleans retail transactions and census profile data and
builds a country-scoped reporting schema for dashboards and modeling.
"""

__version__ = "1.0.0"
