"""PostgreSQL storage access"""
from .connection import get_connection, get_connection_string
