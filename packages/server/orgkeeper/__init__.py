"""
orgkeeper server

Organization membership, per-member page scoping and sealed organization
API keys for the publishing platform.
"""

__version__ = "0.1.0"
