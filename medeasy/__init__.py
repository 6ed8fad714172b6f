"""MedEasy clinic appointment API"""

__version__ = "1.0.0"
