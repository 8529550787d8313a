"""Utility functions"""
from .naming import format_title, is_safe_table_name, parse_int_id
