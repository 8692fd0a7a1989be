"""
orgkeeper shared schemas

Request/response models and the closed enumerations used by the orgkeeper
server and by any client talking to it.
"""

__version__ = "0.1.0"
