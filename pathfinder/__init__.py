"""
pathFinder - frontier-expanding endpoint fuzzer
"""
__version__ = "1.0.0"
