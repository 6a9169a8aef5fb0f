"""
Cumulus: a purely functional client for CloudStack, OpenStack Nova and
Rackspace Cloud Servers.
"""

__version__ = '0.1.0'
