"""tabledesk - CRUD front-end over pluggable tabular data sources"""
__version__ = '0.1.0'
